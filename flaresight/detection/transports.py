"""
Classification transports for live scene detection.

The sampler only knows the ClassificationTransport protocol; these are the
implementations shipped with FlareSight:

- CallableTransport: wrap any sync or async function (handy for tests)
- LocalSceneTransport: OpenCV heuristics, runs fully offline
- GatewaySceneTransport: hosted vision LLM behind an OpenAI-compatible
  chat-completions gateway
"""

import asyncio
import inspect
import json
import logging
from functools import partial
from typing import Any, Callable, Dict, List, Optional

import requests

from .frames import decode_jpeg, encode_data_url
from .models import ClassificationResult, Confidence
from .scene_analyzer import SceneAnalyzer
from ..config import GatewayConfig
from ..errors import ConfigurationError, RateLimitedError, TransportError

logger = logging.getLogger(__name__)


class CallableTransport:
    """Adapt a plain function ``fn(frame_bytes)`` to the transport protocol."""

    def __init__(self, fn: Callable[[bytes], Any]):
        self.fn = fn

    async def classify(self, frame: bytes) -> Optional[ClassificationResult]:
        result = self.fn(frame)
        if inspect.isawaitable(result):
            result = await result
        return result


class LocalSceneTransport:
    """
    Offline classifier using SceneAnalyzer heuristics.

    Analysis runs in the default executor so the event loop stays free.
    """

    def __init__(self, analyzer: Optional[SceneAnalyzer] = None):
        self.analyzer = analyzer or SceneAnalyzer()

    def classify_sync(self, frame: bytes) -> Optional[ClassificationResult]:
        image = decode_jpeg(frame)
        analysis = self.analyzer.classify_scene(image)
        label = analysis['classification']
        if label is None:
            logger.debug(f"No scene above threshold: {analysis['scores']}")
            return None
        return ClassificationResult(label=label,
                                    confidence=Confidence.from_value(analysis['confidence']))

    async def classify(self, frame: bytes) -> Optional[ClassificationResult]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(self.classify_sync, frame))


class GatewaySceneTransport:
    """
    Scene detection through a hosted vision LLM.

    Sends the frame as a data URL and forces a ``suggest_filter`` tool call
    so the answer comes back as structured JSON.
    """

    SCENES = ["Sky/Clouds", "Sun Rays", "Silhouette", "Foliage/Trees",
              "Wildlife", "Golden Hour", "Low Light"]

    SYSTEM_PROMPT = """You are a professional nature photography assistant. Analyze camera frames and detect scenes to suggest appropriate cinematic filters.

Scene types to detect:
- Sky/Clouds: Clear or cloudy skies with interesting cloud formations
- Sun Rays: Visible light beams through trees, fog, or atmosphere
- Silhouette: Backlit subjects with dramatic contrast
- Foliage/Trees: Forest, leaves, greenery dominant
- Wildlife: Animals or birds present
- Golden Hour: Warm sunset/sunrise lighting
- Low Light: Dark scenes, night photography, indoor with window light

Report how confident you are as high, medium or low."""

    def __init__(self, config: Optional[GatewayConfig] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize gateway transport.

        Args:
            config: Gateway settings; defaults read FLARESIGHT_GATEWAY_API_KEY
            session: Optional requests session (connection reuse, testing)

        Raises:
            ConfigurationError: if no API key is available
        """
        self.config = config or GatewayConfig.from_config()
        if not self.config.api_key:
            raise ConfigurationError(
                "Gateway API key not provided (set gateway.api_key or FLARESIGHT_GATEWAY_API_KEY)"
            )
        self.session = session or requests.Session()

    def build_payload(self, frame: bytes) -> Dict[str, Any]:
        return {
            'model': self.config.model,
            'messages': [
                {'role': 'system', 'content': self.SYSTEM_PROMPT},
                {
                    'role': 'user',
                    'content': [
                        {'type': 'text',
                         'text': 'Analyze this camera frame and suggest the best filter.'},
                        {'type': 'image_url',
                         'image_url': {'url': encode_data_url(frame)}},
                    ]
                }
            ],
            'tools': [self._tool_schema()],
            'tool_choice': {'type': 'function', 'function': {'name': 'suggest_filter'}},
        }

    def _tool_schema(self) -> Dict[str, Any]:
        return {
            'type': 'function',
            'function': {
                'name': 'suggest_filter',
                'description': 'Suggest a cinematic filter based on detected scene',
                'parameters': {
                    'type': 'object',
                    'properties': {
                        'scene': {'type': 'string', 'enum': self.SCENES},
                        'confidence': {'type': 'string',
                                       'enum': [c.value for c in Confidence]},
                    },
                    'required': ['scene', 'confidence']
                }
            }
        }

    def classify_sync(self, frame: bytes) -> Optional[ClassificationResult]:
        headers = {
            'Authorization': f"Bearer {self.config.api_key}",
            'Content-Type': 'application/json',
        }
        try:
            response = self.session.post(self.config.url, headers=headers,
                                         json=self.build_payload(frame),
                                         timeout=self.config.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Gateway request failed: {e}") from e

        if response.status_code == 429:
            raise RateLimitedError("Rate limit exceeded")
        if response.status_code == 402:
            raise TransportError("Payment required")
        if not response.ok:
            raise TransportError(f"Gateway error {response.status_code}: {response.text[:200]}")

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"Gateway returned invalid JSON: {e}") from e

        return self.parse_response(data)

    @staticmethod
    def parse_response(data: Dict[str, Any]) -> Optional[ClassificationResult]:
        """Extract the scene from a chat-completions tool call, None if absent."""
        choices: List[Dict] = data.get('choices') or []
        if not choices:
            return None
        tool_calls = (choices[0].get('message') or {}).get('tool_calls') or []
        if not tool_calls:
            return None
        arguments = (tool_calls[0].get('function') or {}).get('arguments')
        if not arguments:
            return None

        try:
            suggestion = json.loads(arguments) if isinstance(arguments, str) else arguments
            scene = suggestion['scene']
            confidence = Confidence.from_value(suggestion.get('confidence', 'medium'))
        except (ValueError, KeyError, TypeError) as e:
            raise TransportError(f"Malformed tool call arguments: {e}") from e

        if not scene:
            return None
        return ClassificationResult(label=scene, confidence=confidence)

    async def classify(self, frame: bytes) -> Optional[ClassificationResult]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(self.classify_sync, frame))
