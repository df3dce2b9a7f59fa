"""
Heuristic scene analysis for offline scene suggestions
Scores a downscaled preview frame against the scenes the recommender knows
"""

import numpy as np
import cv2
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)


class SceneAnalyzer:
    """Classify preview frames into coarse photographic scenes"""

    SKY = "Sky/Clouds"
    GOLDEN_HOUR = "Golden Hour"
    FOLIAGE = "Foliage/Trees"
    LOW_LIGHT = "Low Light"
    SILHOUETTE = "Silhouette"
    FOG = "Fog"

    def __init__(self,
                 min_score: float = 0.25,
                 low_light_brightness: float = 60.0,
                 fog_contrast: float = 30.0,
                 saturation_floor: int = 60):
        """
        Initialize scene analyzer

        Args:
            min_score: Best scene score needed before a label is reported
            low_light_brightness: Mean brightness (0-255) below which a frame is dark
            fog_contrast: Brightness std-dev below which a bright frame looks hazy
            saturation_floor: Minimum HSV saturation for hue-based masks
        """
        self.min_score = min_score
        self.low_light_brightness = low_light_brightness
        self.fog_contrast = fog_contrast
        self.saturation_floor = saturation_floor

    def classify_scene(self, image: np.ndarray) -> Dict:
        """
        Score every known scene and pick the strongest

        Args:
            image: RGB image array (uint8)

        Returns:
            Dictionary with classification results; 'classification' is None
            when no scene scores above min_score
        """
        hsv = cv2.cvtColor(image, cv2.COLOR_RGB2HSV)
        gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)

        brightness = float(np.mean(gray))
        brightness_std = float(np.std(gray))

        scores = {
            self.SKY: self._detect_sky(hsv),
            self.GOLDEN_HOUR: self._detect_warm_light(hsv),
            self.FOLIAGE: self._detect_foliage(hsv),
            self.LOW_LIGHT: self._score_low_light(brightness),
            self.SILHOUETTE: self._detect_silhouette(gray),
            self.FOG: self._score_fog(hsv, brightness, brightness_std),
        }

        best_label = max(scores, key=scores.get)
        best_score = scores[best_label]
        classification: Optional[str] = best_label if best_score >= self.min_score else None

        return {
            'classification': classification,
            'confidence': best_score if classification else 0.0,
            'scores': scores,
            'metrics': {
                'brightness': brightness,
                'brightness_std': brightness_std,
            }
        }

    def _hue_ratio(self, hsv: np.ndarray, low: int, high: int) -> float:
        """Fraction of saturated, lit pixels whose hue falls in [low, high] (OpenCV 0-179)"""
        mask = cv2.inRange(hsv,
                           np.array([low, self.saturation_floor, 50]),
                           np.array([high, 255, 255]))
        return float(np.count_nonzero(mask)) / (hsv.shape[0] * hsv.shape[1])

    def _detect_sky(self, hsv: np.ndarray) -> float:
        """Blue ratio in the upper third of the frame"""
        h = hsv.shape[0]
        upper_third = hsv[:max(h // 3, 1)]
        # Sky is often paler than foliage, so relax the saturation floor
        mask = cv2.inRange(upper_third, np.array([95, 30, 80]), np.array([130, 255, 255]))
        blue_ratio = float(np.count_nonzero(mask)) / (upper_third.shape[0] * upper_third.shape[1])
        return min(1.0, blue_ratio * 1.2)

    def _detect_warm_light(self, hsv: np.ndarray) -> float:
        """Orange/amber dominance typical of sunrise and sunset"""
        warm_ratio = self._hue_ratio(hsv, 5, 25)
        return min(1.0, warm_ratio * 2.0)

    def _detect_foliage(self, hsv: np.ndarray) -> float:
        green_ratio = self._hue_ratio(hsv, 35, 85)
        return min(1.0, green_ratio * 1.5)

    def _score_low_light(self, brightness: float) -> float:
        if brightness >= self.low_light_brightness:
            return 0.0
        return 1.0 - brightness / self.low_light_brightness

    def _detect_silhouette(self, gray: np.ndarray) -> float:
        """Large dark masses against a bright background"""
        total = gray.shape[0] * gray.shape[1]
        dark_ratio = float(np.count_nonzero(gray < 40)) / total
        bright_ratio = float(np.count_nonzero(gray > 200)) / total

        if dark_ratio < 0.2 or bright_ratio < 0.15:
            return 0.0
        # Strongest when the frame is split between the two extremes
        return min(1.0, 2.0 * min(dark_ratio, bright_ratio) + 0.3)

    def _score_fog(self, hsv: np.ndarray, brightness: float, brightness_std: float) -> float:
        """Bright, flat, washed-out frames"""
        if brightness < 110 or brightness_std >= self.fog_contrast:
            return 0.0
        mean_saturation = float(np.mean(hsv[:, :, 1]))
        if mean_saturation > 60:
            return 0.0
        flatness = 1.0 - brightness_std / self.fog_contrast
        washout = 1.0 - mean_saturation / 60.0
        return max(0.0, min(1.0, 0.5 * flatness + 0.5 * washout))
