"""Relative change between two measurements of the same metric."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

from .exceptions import DegenerateMetric

logger = logging.getLogger(__name__)

# Changes within +/- this fraction are not reported as improvement or regression
NEUTRAL_BAND = 0.05

UNDEFINED_LABEL = "?"


class Polarity(Enum):
    """Which direction of change counts as an improvement."""

    LOWER_IS_BETTER = "lower_is_better"
    HIGHER_IS_BETTER = "higher_is_better"


class ChangeKind(Enum):
    """Classification of a relative change."""

    IMPROVED = "improved"
    REGRESSED = "regressed"
    NEUTRAL = "neutral"
    UNDEFINED = "undefined"


@dataclass(frozen=True)
class ChangeResult:
    """Relative change of a candidate value against a reference value.

    Attributes:
        kind: Classification of the change
        percent: Change in percent, rounded to one decimal (None when undefined)
    """

    kind: ChangeKind
    percent: float | None = None

    @property
    def label(self) -> str:
        """Signed percentage, e.g. ``+10.0%`` or ``-3.4%``; ``?`` when undefined."""
        if self.percent is None:
            return UNDEFINED_LABEL
        if self.percent > 0:
            return f"+{self.percent:.1f}%"
        return f"{self.percent:.1f}%"

    @property
    def is_defined(self) -> bool:
        return self.kind is not ChangeKind.UNDEFINED

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind.value,
            "percent": self.percent,
            "label": self.label,
        }

    def __str__(self) -> str:
        return self.label


UNDEFINED = ChangeResult(ChangeKind.UNDEFINED)


def ratio(numerator: float, denominator: float) -> float:
    """Divide two metric values.

    Raises:
        DegenerateMetric: If the denominator is zero or either value or the
            result is NaN or infinite
    """
    if denominator == 0 or not math.isfinite(denominator) or not math.isfinite(numerator):
        raise DegenerateMetric(
            "Cannot divide by a degenerate reference value",
            context={"numerator": numerator, "denominator": denominator},
        )
    value = numerator / denominator
    if not math.isfinite(value):
        raise DegenerateMetric(
            "Ratio is not finite",
            context={"numerator": numerator, "denominator": denominator},
        )
    return value


def relative_change(
    reference: float,
    candidate: float,
    polarity: Polarity = Polarity.LOWER_IS_BETTER,
    neutral_band: float = NEUTRAL_BAND,
) -> ChangeResult:
    """Compute the relative change from ``reference`` to ``candidate``.

    The change is ``100 * (candidate / reference - 1)`` percent, rounded to
    one decimal. A change whose rounded magnitude is within ``neutral_band``
    is neutral, so exactly +5.0% is neutral and +5.1% is not.

    The result is undefined when the reference is zero, when any value is NaN
    or infinite, and when the candidate dropped to exactly zero (ratio -1).

    Args:
        reference: Baseline value (the lower revision)
        candidate: Value being compared (the higher revision)
        polarity: Whether a decrease is an improvement (time, memory) or not
        neutral_band: Half-width of the neutral band as a fraction

    Returns:
        ChangeResult with classification and percentage
    """
    try:
        change = ratio(candidate, reference) - 1.0
    except DegenerateMetric as e:
        logger.debug("Undefined change: %s", e.message)
        return UNDEFINED

    if change == -1.0:
        return UNDEFINED

    percent = round(100.0 * change, 1)
    if percent == 0:
        # Avoid reporting "-0.0%"
        percent = 0.0

    if abs(percent) <= round(100.0 * neutral_band, 1):
        return ChangeResult(ChangeKind.NEUTRAL, percent)

    increased = percent > 0
    if polarity is Polarity.HIGHER_IS_BETTER:
        increased = not increased
    kind = ChangeKind.REGRESSED if increased else ChangeKind.IMPROVED
    return ChangeResult(kind, percent)


def format_time(seconds: float) -> str:
    """Format a duration the way reports show it (``12.34s``)."""
    return f"{seconds:.2f}s"


def format_memory(megabytes: float) -> str:
    """Format a memory peak the way reports show it (``512 MB``)."""
    return f"{megabytes:.0f} MB"
