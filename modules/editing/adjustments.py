"""Adjustment channels and their mapping to a CSS-style filter description."""

from __future__ import annotations

import math
from dataclasses import astuple, dataclass, replace
from typing import Dict, Tuple

CHANNELS: Tuple[str, ...] = (
    "brightness",
    "contrast",
    "saturation",
    "exposure",
    "hue",
    "vibrance",
    "sharpness",
)

CHANNEL_RANGES: Dict[str, Tuple[float, float]] = {
    "brightness": (0, 200),
    "contrast": (0, 200),
    "saturation": (0, 200),
    "exposure": (0, 200),
    "hue": (0, 360),
    "vibrance": (0, 200),
    "sharpness": (0, 100),
}

SHARPNESS_CONTRAST_GAIN = 0.2
SHARPNESS_LUMINANCE_GAIN = 0.05
SHARPNESS_LUMINANCE_THRESHOLD = 50


@dataclass(slots=True, frozen=True)
class AdjustmentVector:
    """Seven adjustment channels; 100 is neutral except hue and sharpness."""

    brightness: float = 100
    contrast: float = 100
    saturation: float = 100
    exposure: float = 100
    hue: float = 0
    vibrance: float = 100
    sharpness: float = 0

    def with_channel(self, channel: str, value: float) -> "AdjustmentVector":
        """Return a copy with one channel replaced."""
        if channel not in CHANNEL_RANGES:
            raise KeyError(f"Unknown adjustment channel '{channel}'")
        return replace(self, **{channel: value})

    def as_dict(self) -> Dict[str, float]:
        return dict(zip(CHANNELS, astuple(self)))


DEFAULT_ADJUSTMENTS = AdjustmentVector()

# Differences this small come from the gain multiplications, not from input.
_NOISE_ULPS = 4


def _format_number(value: float) -> str:
    number = float(value)
    cleaned = round(number, 10)
    if cleaned != number and abs(cleaned - number) <= _NOISE_ULPS * math.ulp(number):
        number = cleaned
    if number.is_integer():
        return str(int(number))
    return repr(number)


def compose_filter_description(vector: AdjustmentVector) -> str:
    """Derive the filter string for the rendering surface.

    Sharpening is simulated: it adds ``0.2 * sharpness`` to contrast and,
    above 50, an extra ``brightness(100 + 0.05 * sharpness %)`` term. Vibrance
    shifts saturation by ``vibrance - 100``. Exposure renders as opacity.
    """
    terms = [
        f"brightness({_format_number(vector.brightness)}%)",
        f"contrast({_format_number(vector.contrast + vector.sharpness * SHARPNESS_CONTRAST_GAIN)}%)",
        f"saturate({_format_number(vector.saturation + (vector.vibrance - 100))}%)",
        f"opacity({_format_number(vector.exposure)}%)",
        f"hue-rotate({_format_number(vector.hue)}deg)",
    ]
    if vector.sharpness > SHARPNESS_LUMINANCE_THRESHOLD:
        terms.append(f"brightness({_format_number(100 + vector.sharpness * SHARPNESS_LUMINANCE_GAIN)}%)")
    return " ".join(terms)
