"""Benchmark categories, their metrics and the sort criteria that apply to them.

Measurements live in one table per category:

- ``csb``: player runs of recorded simulation files (``processed_csb``)
- ``ini``: cutting runs driven by ini configurations (``processed_ini``)

This table is closed. Requests naming anything else are rejected with
:class:`~cutsim_bench.exceptions.UnsupportedCategory`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .change import Polarity, format_memory, format_time
from .exceptions import UnsupportedCategory

# Chart colours (Chart.js sample palette)
BLUE = "rgb(54, 162, 235)"
ORANGE = "rgb(255, 159, 64)"
YELLOW = "rgb(255, 205, 86)"
GREEN = "rgb(75, 192, 192)"


class SortCriterion(Enum):
    """Orderings offered for comparison reports."""

    NAME = "name"
    CUT_TIME = "cut time"
    DRAW_TIME = "draw time"
    MEMORY = "memory"

    @classmethod
    def parse(cls, value: str) -> SortCriterion:
        """Look up a criterion by its value, e.g. ``"cut time"``."""
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedCategory(
                f"Unknown sort criterion: {value}",
                context={"sort": value, "available": [c.value for c in cls]},
                suggestions=["Use one of the available sort criteria"],
            ) from None


DEFAULT_SORT = SortCriterion.CUT_TIME


class Unit(Enum):
    SECONDS = "s"
    MEGABYTES = "MB"


@dataclass(frozen=True)
class Metric:
    """A measured column.

    Attributes:
        column: Column name in the measurement table
        title: Human-readable title used for chart datasets
        unit: Unit of the raw values
        color: Chart colour for this metric
        polarity: Which direction of change is an improvement
    """

    column: str
    title: str
    unit: Unit
    color: str
    polarity: Polarity = Polarity.LOWER_IS_BETTER

    def format(self, value: float) -> str:
        if self.unit is Unit.SECONDS:
            return format_time(value)
        return format_memory(value)


MEMORY_PEAK = Metric("memory_peak", "Memory", Unit.MEGABYTES, BLUE)
PLAYER_TOTAL_TIME = Metric("player_total_time", "Run Time", Unit.SECONDS, YELLOW)
CUTTING_TIME = Metric("cutting_time", "Cut Time", Unit.SECONDS, ORANGE)
DRAW_TIME = Metric("draw_time", "Draw Time", Unit.SECONDS, GREEN)


@dataclass(frozen=True)
class Category:
    """A family of testcases stored in one measurement table.

    Attributes:
        key: Category name used in requests (``csb``, ``ini``)
        table: Measurement table holding the raw runs
        metrics: Metrics tracked for this category, in report order
        sort_metrics: Metric used for each non-name sort criterion
        file_suffix: Extension of the testcase files in this category
    """

    key: str
    table: str
    metrics: tuple[Metric, ...]
    sort_metrics: dict[SortCriterion, Metric] = field(default_factory=dict)
    file_suffix: str = ""

    @property
    def columns(self) -> list[str]:
        return [m.column for m in self.metrics]

    def metric(self, column: str) -> Metric:
        for m in self.metrics:
            if m.column == column:
                return m
        raise UnsupportedCategory(
            f"Category '{self.key}' has no metric '{column}'",
            context={"category": self.key, "available": self.columns},
        )

    def sort_metric(self, criterion: SortCriterion) -> Metric | None:
        """Metric that orders this category's rows, or None for name ordering."""
        if criterion is SortCriterion.NAME:
            return None
        return self.sort_metrics[criterion]


CSB = Category(
    key="csb",
    table="processed_csb",
    metrics=(MEMORY_PEAK, PLAYER_TOTAL_TIME),
    sort_metrics={
        # Player runs have a single timing column
        SortCriterion.CUT_TIME: PLAYER_TOTAL_TIME,
        SortCriterion.DRAW_TIME: PLAYER_TOTAL_TIME,
        SortCriterion.MEMORY: MEMORY_PEAK,
    },
    file_suffix=".csb",
)

INI = Category(
    key="ini",
    table="processed_ini",
    metrics=(MEMORY_PEAK, CUTTING_TIME, DRAW_TIME),
    sort_metrics={
        SortCriterion.CUT_TIME: CUTTING_TIME,
        SortCriterion.DRAW_TIME: DRAW_TIME,
        SortCriterion.MEMORY: MEMORY_PEAK,
    },
    file_suffix=".ini",
)

CATEGORIES: dict[str, Category] = {c.key: c for c in (CSB, INI)}

# The broader-coverage table anchors the revision list
PRIMARY_CATEGORY = CSB


@dataclass(frozen=True)
class MetricKey:
    """Selector for the all-testcases chart of one metric in one category."""

    key: str
    category: Category
    metric: Metric


METRIC_KEYS: dict[str, MetricKey] = {
    mk.key: mk
    for mk in (
        MetricKey("csb_memory", CSB, MEMORY_PEAK),
        MetricKey("csb_play_time", CSB, PLAYER_TOTAL_TIME),
        MetricKey("ini_memory", INI, MEMORY_PEAK),
        MetricKey("ini_cut_time", INI, CUTTING_TIME),
        MetricKey("ini_draw_time", INI, DRAW_TIME),
    )
}


def get_category(key: str) -> Category:
    """Look up a category by key.

    Raises:
        UnsupportedCategory: If the key is not configured
    """
    try:
        return CATEGORIES[key]
    except KeyError:
        raise UnsupportedCategory(
            f"Unknown category: {key}",
            context={"category": key, "available": sorted(CATEGORIES)},
            suggestions=["Use one of the available categories"],
        ) from None


def get_metric_key(key: str) -> MetricKey:
    """Look up an all-testcases metric key.

    Raises:
        UnsupportedCategory: If the key is not configured
    """
    try:
        return METRIC_KEYS[key]
    except KeyError:
        raise UnsupportedCategory(
            f"Unknown metric key: {key}",
            context={"metric_key": key, "available": sorted(METRIC_KEYS)},
            suggestions=["Use one of the available metric keys"],
        ) from None


def category_for_testcase(name: str) -> Category:
    """Guess the category from a testcase file name (``.csb`` files are player runs)."""
    if CSB.file_suffix in name.lower():
        return CSB
    return INI
