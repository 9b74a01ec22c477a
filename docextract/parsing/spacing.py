"""Space-width estimation for fonts.

Positive TJ adjustments larger than a fraction of the font's space width are
rendered as spaces. Many fonts do not map a space glyph, so its width is
estimated from the widths of common characters via per-character affine
fits, then corrected for bias and clamped.
"""

import statistics
from collections.abc import Iterable

DEFAULT_SPACE_WIDTH = 280.0
MIN_SPACE_WIDTH = 200.0
MAX_SPACE_WIDTH = 1000.0
BIAS_SLOPE = 1.366239
BIAS_INTERCEPT = -139.183703

# Character -> (intercept, slope) predicting the space width from its width
SPACE_WIDTH_CALIBRATION: dict[str, tuple[float, float]] = {
    " ": (0.0, 1.0),
    "\u00a0": (0.0, 1.0),
    ")": (-43.01937, 1.0268),
    "/": (-10.99708, 0.9623335),
    "•": (-24.2725, 0.9956384),
    "\u2212": (-439.6255, 1.238626),
    "\u2217": (91.30598, 0.7265824),
    "1": (-130.7855, 0.9746186),
    "a": (-131.2164, 0.9740258),
    "A": (72.40703, 0.4928694),
    "e": (-136.5258, 0.9895894),
    "E": (-28.76257, 0.6957778),
    "i": (51.62929, 0.8973944),
    "ε": (-56.25771, 0.9947787),
    "\u2126": (-132.9966, 1.002173),
    "中": (-356.8609, 1.215483),
}


def estimate_space_width(characters: Iterable[tuple[str, float]]) -> float:
    """Estimate the width of a space in thousandths of text space.

    Args:
        characters: (text, width) pairs for the characters a font defines.

    Returns:
        Estimated space width, clamped to [200, 1000].
    """
    guesses = [DEFAULT_SPACE_WIDTH]
    for text, width in characters:
        coefficients = SPACE_WIDTH_CALIBRATION.get(text)
        if coefficients is None or width <= 0:
            continue
        intercept, slope = coefficients
        guesses.append(intercept + slope * width)

    estimate = BIAS_SLOPE * statistics.median(guesses) + BIAS_INTERCEPT
    return min(max(estimate, MIN_SPACE_WIDTH), MAX_SPACE_WIDTH)
