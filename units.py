from __future__ import annotations

import math

MGDL_TO_MMOL = 0.02586
CHOLESTEROL_MGDL_THRESHOLD = 20.0

RISK_CEILING = 0.95


def normalize_cholesterol(value: float) -> float:
    """
    Return a cholesterol value in mmol/L.

    Values above 20 can only be mg/dL readings (mmol/L values sit in the
    single digits), so they are converted. Non-finite input becomes NaN and
    non-positive input is passed through untouched.
    """
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return math.nan

    if not math.isfinite(numeric):
        return math.nan

    if numeric <= 0:
        return numeric

    if numeric > CHOLESTEROL_MGDL_THRESHOLD:
        return numeric * MGDL_TO_MMOL

    return numeric


def clamp_probability(value: float) -> float:
    # never report certainty
    if math.isnan(value):
        return 0.0
    return min(max(value, 0.0), RISK_CEILING)


def sigmoid(x: float) -> float:
    if x < 0:
        z = math.exp(x)
        return z / (1.0 + z)
    return 1.0 / (1.0 + math.exp(-x))
