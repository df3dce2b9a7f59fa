"""
Rendering sinks for filter chains.

The camera preview consumes a CSS filter string; captured stills can be
graded offline with apply_chain(), which follows the W3C Filter Effects
definitions of the same functions so both paths look alike.
"""

import logging
from typing import Callable, Dict

import numpy as np

from .grading.models import FilterChain

logger = logging.getLogger(__name__)


def _format_number(value: float) -> str:
    return f"{value:g}"


_CSS_FORMATTERS: Dict[str, Callable[[float], str]] = {
    'brightness': lambda v: f"brightness({_format_number(v)}%)",
    'contrast': lambda v: f"contrast({_format_number(v)}%)",
    'saturate': lambda v: f"saturate({_format_number(v)}%)",
    'sepia': lambda v: f"sepia({_format_number(v)})",
    'grayscale': lambda v: f"grayscale({_format_number(v)})",
}


def to_css_filter(chain: FilterChain) -> str:
    """
    Render a filter chain as a CSS ``filter`` property value.

    Args:
        chain: Ordered filter operations

    Returns:
        Space separated filter functions, empty string for an empty chain
    """
    parts = []
    for op in chain:
        formatter = _CSS_FORMATTERS.get(op.kind)
        if formatter is None:
            logger.warning(f"No CSS mapping for filter operation '{op.kind}', skipping")
            continue
        parts.append(formatter(op.magnitude))
    return " ".join(parts)


def _saturate_matrix(s: float) -> np.ndarray:
    return np.array([
        [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
    ], dtype=np.float32)


def _sepia_matrix(amount: float) -> np.ndarray:
    a = 1.0 - min(max(amount, 0.0), 1.0)
    return np.array([
        [0.393 + 0.607 * a, 0.769 - 0.769 * a, 0.189 - 0.189 * a],
        [0.349 - 0.349 * a, 0.686 + 0.314 * a, 0.168 - 0.168 * a],
        [0.272 - 0.272 * a, 0.534 - 0.534 * a, 0.131 + 0.869 * a],
    ], dtype=np.float32)


def _grayscale_matrix(amount: float) -> np.ndarray:
    a = 1.0 - min(max(amount, 0.0), 1.0)
    return np.array([
        [0.2126 + 0.7874 * a, 0.7152 - 0.7152 * a, 0.0722 - 0.0722 * a],
        [0.2126 - 0.2126 * a, 0.7152 + 0.2848 * a, 0.0722 - 0.0722 * a],
        [0.2126 - 0.2126 * a, 0.7152 - 0.7152 * a, 0.0722 + 0.9278 * a],
    ], dtype=np.float32)


def _apply_operation(img: np.ndarray, kind: str, magnitude: float) -> np.ndarray:
    if kind == 'brightness':
        return img * (magnitude / 100.0)
    if kind == 'contrast':
        return (img - 0.5) * (magnitude / 100.0) + 0.5
    if kind == 'saturate':
        return img @ _saturate_matrix(magnitude / 100.0).T
    if kind == 'sepia':
        return img @ _sepia_matrix(magnitude).T
    if kind == 'grayscale':
        return img @ _grayscale_matrix(magnitude).T
    logger.warning(f"Unknown filter operation '{kind}', skipping")
    return img


def apply_chain(image: np.ndarray, chain: FilterChain) -> np.ndarray:
    """
    Apply a filter chain to an RGB image.

    Args:
        image: RGB image, uint8, uint16 or float in [0, 1]
        chain: Ordered filter operations

    Returns:
        Graded image in the input dtype
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an RGB image, got shape {image.shape}")

    if image.dtype == np.uint8:
        img_float = image.astype(np.float32) / 255.0
    elif image.dtype == np.uint16:
        img_float = image.astype(np.float32) / 65535.0
    else:
        img_float = image.astype(np.float32)

    for op in chain:
        # Each CSS filter function clamps its output
        img_float = np.clip(_apply_operation(img_float, op.kind, op.magnitude), 0, 1)

    if image.dtype == np.uint8:
        return np.round(img_float * 255).astype(np.uint8)
    if image.dtype == np.uint16:
        return np.round(img_float * 65535).astype(np.uint16)
    return img_float.astype(image.dtype)
