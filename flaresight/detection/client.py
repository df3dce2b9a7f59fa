"""
Scene classifier client.

Samples the live preview at a slow, fixed cadence and turns each sample
into a SceneObservation via a pluggable classification transport.

Guarantees:
- at most one classification call outstanding at any time
- samples are at least ``min_interval`` seconds apart, measured from when
  the previous sample was taken (not when its result arrived)
- transport failures are logged and become "no observation this cycle"
- once stopped, a call that was already in flight never emits
"""

import asyncio
import logging
import time
from typing import Any, Callable, List, Optional, Set

from .frames import encode_frame
from .models import (
    ClassificationResult, ClassificationTransport, FrameSource,
    SamplerState, SceneObservation
)
from ..config import DetectionConfig
from ..errors import FrameUnavailableError
from ..utils.logging import SamplingStats, StructuredLogger

logger = logging.getLogger(__name__)

ObservationCallback = Callable[[Optional[SceneObservation]], None]


def _coerce_result(result: Any) -> Optional[ClassificationResult]:
    """Accept ClassificationResult, a {'label'|'scene', 'confidence'} dict, or None."""
    if result is None or isinstance(result, ClassificationResult):
        return result
    if isinstance(result, dict):
        label = result.get('label') or result.get('scene')
        if not label:
            return None
        return ClassificationResult(label=label,
                                    confidence=result.get('confidence', 'medium'))
    raise TypeError(f"Unsupported classification result: {type(result).__name__}")


class SceneClassifierClient:
    """
    Throttled scene sampler for one video source.

    Each instance owns its own timers, in-flight flag and liveness state;
    create one per video source and stop() it on teardown.
    """

    def __init__(self, frame_source: FrameSource, transport: ClassificationTransport,
                 config: Optional[DetectionConfig] = None,
                 clock: Optional[Callable[[], float]] = None):
        """
        Initialize classifier client.

        Args:
            frame_source: Live preview frames
            transport: Classification backend
            config: Timing and frame settings
            clock: Monotonic clock in seconds (defaults to time.monotonic)
        """
        self.frame_source = frame_source
        self.transport = transport
        self.config = config or DetectionConfig()
        self._clock = clock or time.monotonic

        self.state = SamplerState.IDLE
        self._in_flight = False
        self._last_sample_at: Optional[float] = None
        self._last_observation: Optional[SceneObservation] = None

        # Liveness: stop() bumps the generation so older calls can't emit
        self._closed = False
        self._generation = 0

        self._periodic_task: Optional[asyncio.Task] = None
        self._initial_task: Optional[asyncio.Task] = None
        self._sample_tasks: Set[asyncio.Task] = set()

        self._subscribers: List[ObservationCallback] = []
        self.stats = SamplingStats()
        self._log = StructuredLogger(__name__, {'transport': type(transport).__name__})

    # ------------------------------------------------------------------
    # Observers

    def subscribe(self, callback: ObservationCallback) -> Callable[[], None]:
        """
        Register an observer for completed sampling cycles.

        Args:
            callback: Called with a SceneObservation, or None when the cycle
                produced nothing (empty result or transport failure)

        Returns:
            Function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _emit(self, observation: Optional[SceneObservation]):
        for callback in list(self._subscribers):
            try:
                callback(observation)
            except Exception as e:
                logger.error(f"Scene observer {callback!r} failed: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Properties

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def last_sample_at(self) -> Optional[float]:
        return self._last_sample_at

    @property
    def last_observation(self) -> Optional[SceneObservation]:
        return self._last_observation

    @property
    def is_running(self) -> bool:
        return self._periodic_task is not None and not self._periodic_task.done()

    @property
    def is_stopped(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Lifecycle

    def start(self):
        """
        Begin periodic sampling on the running event loop.

        Schedules a tick every ``min_interval`` seconds plus one early attempt
        after ``initial_delay`` so the first suggestion doesn't wait a full
        period.

        Raises:
            RuntimeError: if called outside a running event loop
        """
        if self.is_running:
            return

        loop = asyncio.get_running_loop()
        self._closed = False
        self._periodic_task = loop.create_task(self._run_periodic())
        self._initial_task = loop.create_task(self._run_initial())
        logger.info(f"Scene sampling started (every {self.config.min_interval}s, "
                    f"first attempt after {self.config.initial_delay}s)")

    def stop(self):
        """
        Cancel both timers and drop any result still in flight.

        Safe to call more than once.
        """
        was_running = self.is_running
        self._closed = True
        self._generation += 1

        for task in (self._periodic_task, self._initial_task):
            if task is not None and not task.done():
                task.cancel()
        self._periodic_task = None
        self._initial_task = None

        if was_running:
            logger.info("Scene sampling stopped")

    async def aclose(self):
        """Stop and wait for outstanding sample calls to settle."""
        self.stop()
        if self._sample_tasks:
            await asyncio.gather(*self._sample_tasks, return_exceptions=True)

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def _run_initial(self):
        await asyncio.sleep(self.config.initial_delay)
        self._spawn_sample()

    async def _run_periodic(self):
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            # Absolute schedule so ticks don't drift with callback latency
            next_tick += self.config.min_interval
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            # A tick can wake before the previous take is min_interval old
            delay = self.seconds_until_ready()
            while delay > 0 and not self._in_flight:
                await asyncio.sleep(delay)
                delay = self.seconds_until_ready()
            self._spawn_sample()

    def _spawn_sample(self):
        if self._closed:
            return
        task = asyncio.get_running_loop().create_task(self.sample_once())
        self._sample_tasks.add(task)
        task.add_done_callback(self._sample_tasks.discard)

    # ------------------------------------------------------------------
    # Sampling

    def _skip(self, reason: str) -> None:
        self.stats.add_skip(reason)
        logger.debug(f"Scene sample skipped: {reason}")
        return None

    def _frame_ready(self) -> bool:
        try:
            return bool(self.frame_source.has_frame())
        except Exception as e:
            logger.debug(f"Frame source readiness check failed: {e}")
            return False

    def seconds_until_ready(self) -> float:
        """Seconds until the throttle allows another sample (0 if it already does)."""
        if self._last_sample_at is None:
            return 0.0
        return max(0.0, self.config.min_interval - (self._clock() - self._last_sample_at))

    async def sample_once(self) -> Optional[SceneObservation]:
        """
        Run one sampling attempt.

        The attempt is skipped (returns None, nothing emitted) when the client
        is stopped, a call is already in flight, the minimum interval hasn't
        elapsed, or the source has no decodable frame yet.

        Returns:
            The new observation, or None
        """
        if self._closed:
            return self._skip('stopped')
        if self._in_flight:
            return self._skip('in_flight')

        now = self._clock()
        if (self._last_sample_at is not None
                and now - self._last_sample_at < self.config.min_interval):
            return self._skip('throttled')

        if not self._frame_ready():
            return self._skip('no_frame')

        # Claim the slot before the first await so concurrent ticks see it
        self._in_flight = True
        self.state = SamplerState.SAMPLING
        generation = self._generation

        failed = False
        result: Optional[ClassificationResult] = None
        try:
            try:
                loop = asyncio.get_running_loop()
                payload = await loop.run_in_executor(None, self._extract_payload)
            except FrameUnavailableError:
                return self._skip('no_frame')
            except Exception as e:
                self.stats.add_failure()
                logger.warning(f"Could not extract preview frame: {e}")
                return None

            if generation != self._generation:
                return self._skip('stopped')

            # Throttle counts from when the sample was taken
            self._last_sample_at = now
            self.stats.add_request()
            self.state = SamplerState.AWAITING_RESULT

            started = self._clock()
            try:
                raw = await self._classify(payload)
                result = _coerce_result(raw)
            except Exception as e:
                failed = True
                self._log.warning("Scene classification failed", error=str(e),
                                  error_type=type(e).__name__)
        finally:
            self._in_flight = False
            self.state = SamplerState.IDLE

        latency = self._clock() - started
        if self._closed or generation != self._generation:
            self.stats.add_discarded()
            logger.debug("Discarding scene result that arrived after stop()")
            return None

        if failed:
            self.stats.add_failure(latency)
            observation = None
        elif result is None:
            self.stats.add_result(False, latency)
            observation = None
        else:
            self.stats.add_result(True, latency)
            observation = SceneObservation(label=result.label,
                                           confidence=result.confidence,
                                           timestamp=time.time())
            self._log.debug("Scene observed", label=observation.label,
                            confidence=observation.confidence.value,
                            latency=round(latency, 3))

        self._last_observation = observation
        self._emit(observation)
        return observation

    async def _classify(self, payload: bytes) -> Any:
        call = self.transport.classify(payload)
        if self.config.request_timeout:
            return await asyncio.wait_for(call, timeout=self.config.request_timeout)
        return await call

    def _extract_payload(self) -> bytes:
        """Read and encode the current frame (runs in the default executor)."""
        frame = self.frame_source.read_frame()
        return encode_frame(frame, self.config.frame_size, self.config.jpeg_quality)
