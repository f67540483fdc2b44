"""Tests for benchmark categories and metric keys."""

import pytest

from cutsim_bench.categories import (
    CATEGORIES,
    CSB,
    CUTTING_TIME,
    DRAW_TIME,
    INI,
    MEMORY_PEAK,
    METRIC_KEYS,
    PLAYER_TOTAL_TIME,
    SortCriterion,
    category_for_testcase,
    get_category,
    get_metric_key,
)
from cutsim_bench.exceptions import UnsupportedCategory


class TestCategories:
    """Test the category table."""

    def test_closed_set(self):
        assert sorted(CATEGORIES) == ["csb", "ini"]

    def test_tables_and_columns(self):
        assert CSB.table == "processed_csb"
        assert CSB.columns == ["memory_peak", "player_total_time"]
        assert INI.table == "processed_ini"
        assert INI.columns == ["memory_peak", "cutting_time", "draw_time"]

    def test_sort_metrics(self):
        assert INI.sort_metric(SortCriterion.CUT_TIME) is CUTTING_TIME
        assert INI.sort_metric(SortCriterion.DRAW_TIME) is DRAW_TIME
        assert CSB.sort_metric(SortCriterion.DRAW_TIME) is PLAYER_TOTAL_TIME
        assert CSB.sort_metric(SortCriterion.MEMORY) is MEMORY_PEAK
        assert CSB.sort_metric(SortCriterion.NAME) is None

    def test_get_category(self):
        assert get_category("ini") is INI

    def test_unknown_category(self):
        with pytest.raises(UnsupportedCategory) as exc_info:
            get_category("stl")
        assert exc_info.value.context["available"] == ["csb", "ini"]

    def test_unknown_metric_column(self):
        with pytest.raises(UnsupportedCategory):
            CSB.metric("cutting_time")

    def test_metric_formatting(self):
        assert CUTTING_TIME.format(1.234) == "1.23s"
        assert MEMORY_PEAK.format(256.4) == "256 MB"


class TestMetricKeys:
    def test_all_keys(self):
        assert sorted(METRIC_KEYS) == [
            "csb_memory",
            "csb_play_time",
            "ini_cut_time",
            "ini_draw_time",
            "ini_memory",
        ]

    def test_lookup(self):
        key = get_metric_key("ini_draw_time")
        assert key.category is INI
        assert key.metric is DRAW_TIME

    def test_unknown_key(self):
        with pytest.raises(UnsupportedCategory, match="Unknown metric key"):
            get_metric_key("ini_speed")


class TestSortCriterion:
    def test_parse(self):
        assert SortCriterion.parse("cut time") is SortCriterion.CUT_TIME
        assert SortCriterion.parse("name") is SortCriterion.NAME

    def test_parse_unknown(self):
        with pytest.raises(UnsupportedCategory, match="Unknown sort criterion"):
            SortCriterion.parse("speed")


class TestCategoryForTestcase:
    def test_csb(self):
        assert category_for_testcase("player\\demo.csb") is CSB
        assert category_for_testcase("DEMO.CSB") is CSB

    def test_everything_else_is_ini(self):
        assert category_for_testcase("pocket.ini") is INI
        assert category_for_testcase("pocket") is INI
