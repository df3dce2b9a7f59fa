"""
Live scene detection for FlareSight

Throttled frame sampling, frame extraction, and pluggable classification
transports.
"""

from .models import (
    Confidence,
    SamplerState,
    ClassificationResult,
    SceneObservation,
    ClassificationTransport,
    FrameSource
)
from .frames import (
    downscale_frame,
    encode_frame,
    encode_data_url,
    StillFrameSource,
    VideoCaptureSource
)
from .scene_analyzer import SceneAnalyzer
from .transports import CallableTransport, LocalSceneTransport, GatewaySceneTransport
from .client import SceneClassifierClient

__all__ = [
    'Confidence',
    'SamplerState',
    'ClassificationResult',
    'SceneObservation',
    'ClassificationTransport',
    'FrameSource',
    'downscale_frame',
    'encode_frame',
    'encode_data_url',
    'StillFrameSource',
    'VideoCaptureSource',
    'SceneAnalyzer',
    'CallableTransport',
    'LocalSceneTransport',
    'GatewaySceneTransport',
    'SceneClassifierClient'
]
