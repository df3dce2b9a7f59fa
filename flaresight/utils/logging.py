"""
Logging utilities for FlareSight
Provides structured logging and sampling statistics
"""

import logging
import sys
import time
from typing import Optional, Dict, Any, List
import json

import colorlog

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
_console_handler: Optional[logging.Handler] = None


class StructuredLogger:
    """Provides structured logging with metadata"""

    def __init__(self, name: str, metadata: Optional[Dict[str, Any]] = None):
        """
        Initialize structured logger

        Args:
            name: Logger name
            metadata: Default metadata to include in all logs
        """
        self.logger = logging.getLogger(name)
        self.metadata = metadata or {}

    def _format_message(self, message: str, **kwargs) -> str:
        """Format message with metadata"""
        data = {**self.metadata, **kwargs}
        if data:
            return f"{message} | {json.dumps(data, default=str)}"
        return message

    def debug(self, message: str, **kwargs):
        self.logger.debug(self._format_message(message, **kwargs))

    def info(self, message: str, **kwargs):
        self.logger.info(self._format_message(message, **kwargs))

    def warning(self, message: str, **kwargs):
        self.logger.warning(self._format_message(message, **kwargs))

    def error(self, message: str, **kwargs):
        self.logger.error(self._format_message(message, **kwargs))


class SamplingStats:
    """Tracks scene sampling statistics"""

    SKIP_REASONS = ('stopped', 'in_flight', 'throttled', 'no_frame')

    def __init__(self):
        """Initialize sampling statistics"""
        self.start_time = time.monotonic()
        self.attempts = 0
        self.requests = 0
        self.observations = 0
        self.empty_results = 0
        self.failures = 0
        self.discarded = 0
        self.skipped: Dict[str, int] = {reason: 0 for reason in self.SKIP_REASONS}
        self.latencies: List[float] = []

    def add_skip(self, reason: str):
        self.attempts += 1
        self.skipped[reason] = self.skipped.get(reason, 0) + 1

    def add_request(self):
        self.attempts += 1
        self.requests += 1

    def add_result(self, observed: bool, latency: Optional[float] = None):
        """
        Record a completed classification call

        Args:
            observed: Whether the call produced a scene observation
            latency: Seconds the call took
        """
        if observed:
            self.observations += 1
        else:
            self.empty_results += 1
        if latency is not None:
            self.latencies.append(latency)

    def add_failure(self, latency: Optional[float] = None):
        self.failures += 1
        if latency is not None:
            self.latencies.append(latency)

    def add_discarded(self):
        """Result arrived after the client was stopped"""
        self.discarded += 1

    def get_average_latency(self) -> float:
        if not self.latencies:
            return 0.0
        return sum(self.latencies) / len(self.latencies)

    def get_summary(self) -> Dict[str, Any]:
        """Get sampling summary"""
        return {
            'attempts': self.attempts,
            'requests': self.requests,
            'observations': self.observations,
            'empty_results': self.empty_results,
            'failures': self.failures,
            'discarded': self.discarded,
            'skipped': dict(self.skipped),
            'average_latency': self.get_average_latency(),
            'elapsed_time': time.monotonic() - self.start_time,
        }

    def print_summary(self):
        """Print sampling summary to console"""
        summary = self.get_summary()

        print("\n" + "="*60)
        print("SCENE SAMPLING SUMMARY")
        print("="*60)
        print(f"Attempts:         {summary['attempts']}")
        print(f"Requests:         {summary['requests']}")
        print(f"Observations:     {summary['observations']}")
        print(f"Empty results:    {summary['empty_results']}")
        print(f"Failures:         {summary['failures']}")
        print(f"Discarded:        {summary['discarded']}")

        skipped = {k: v for k, v in summary['skipped'].items() if v}
        if skipped:
            print("\nSkipped attempts:")
            for reason, count in sorted(skipped.items()):
                print(f"  - {reason}: {count}")

        print(f"\nAvg latency:      {summary['average_latency']:.2f}s")
        print(f"Elapsed time:     {summary['elapsed_time']:.1f}s")
        print("="*60)


def setup_console_logging(level: str = "INFO", color: bool = True,
                          fmt: str = DEFAULT_FORMAT):
    """
    Setup console logging with optional color support

    Args:
        level: Logging level
        color: Whether to use colored output
        fmt: Log record format
    """
    console_handler = logging.StreamHandler(sys.stdout)

    if color and sys.stdout.isatty():
        formatter = colorlog.ColoredFormatter(
            '%(log_color)s' + fmt.replace('%(message)s', '%(reset)s%(message)s'),
            log_colors={
                'DEBUG': 'cyan',
                'INFO': 'green',
                'WARNING': 'yellow',
                'ERROR': 'red',
                'CRITICAL': 'red,bg_white',
            }
        )
    else:
        formatter = logging.Formatter(fmt)

    console_handler.setFormatter(formatter)

    global _console_handler
    root_logger = logging.getLogger()
    if _console_handler is not None:
        root_logger.removeHandler(_console_handler)
    _console_handler = console_handler

    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.addHandler(console_handler)
