"""
Exception hierarchy for FlareSight.

Nothing raised inside the sampling loop escapes to the caller; these types
exist so each layer can decide whether a failure is fatal or just means
"no suggestion this cycle".
"""


class FlareSightError(Exception):
    """Base class for all FlareSight errors"""


class ConfigurationError(FlareSightError):
    """Raised when required configuration is missing or malformed"""


class UnknownParameterError(FlareSightError, KeyError):
    """Raised when a grading parameter name is not one of the known knobs"""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self):
        return f"Unknown grading parameter: {self.name!r}"


class PresetNotFoundError(FlareSightError, KeyError):
    """Raised when a preset id is not in the catalog"""

    def __init__(self, preset_id: str):
        super().__init__(preset_id)
        self.preset_id = preset_id

    def __str__(self):
        return f"Unknown filter preset: {self.preset_id!r}"


class TransportError(FlareSightError):
    """Classification call failed or returned an unusable response"""


class RateLimitedError(TransportError):
    """Classification backend asked us to slow down (HTTP 429)"""


class FrameUnavailableError(FlareSightError):
    """Frame source has no decodable frame yet"""
