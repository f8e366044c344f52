"""
Tests for the exam scheduler — predictive lab-exam recommendations.

Covers:
  - Staleness thresholds (30-day months, 999 for never tested)
  - Trigger categories and first-category-wins
  - Output ordering and the absence of de-duplication
  - Malformed lab dates
"""

from datetime import date, timedelta

import pytest
from holoself.core.exam_scheduler import (
    NEVER_TESTED_MONTHS,
    LabInfo,
    SupplementInfo,
    exam_label,
    generate_exam_schedule,
    months_since,
)

TODAY = date(2026, 3, 1)


def lab_days_ago(marker: str, days: int) -> LabInfo:
    return LabInfo(marker=marker, date=(TODAY - timedelta(days=days)).strftime("%Y-%m-%d"))


def fresh_baseline() -> list[LabInfo]:
    """Labs that keep the unconditional vitamin D and thyroid checks quiet."""
    return [lab_days_ago("Vitamin D", 10), lab_days_ago("TSH", 10)]


def types_of(exams) -> list[str]:
    return [e.exam_type for e in exams]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Staleness
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestMonthsSince:

    def test_never_tested_is_sentinel(self):
        assert months_since("zinc", [], TODAY) == NEVER_TESTED_MONTHS

    def test_thirty_day_months(self):
        labs = [lab_days_ago("Zinc", 89)]
        assert months_since("zinc", labs, TODAY) == 2

    def test_marker_match_is_substring_case_insensitive(self):
        labs = [lab_days_ago("Vitamin D 25-OH", 100)]
        assert months_since("vitamin d", labs, TODAY) == 3

    def test_unparseable_date_is_sentinel(self):
        labs = [LabInfo(marker="Zinc", date="03/01/2026")]
        assert months_since("zinc", labs, TODAY) == NEVER_TESTED_MONTHS

    def test_empty_date_is_sentinel(self):
        assert months_since("zinc", [LabInfo("Zinc", "")], TODAY) == NEVER_TESTED_MONTHS


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Baseline checks
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestBaselineChecks:

    def test_no_data_gives_vitamin_d_then_thyroid(self):
        exams = generate_exam_schedule([], [], today=TODAY)
        assert types_of(exams) == ["vitamin_d_panel", "thyroid_panel"]

    def test_vitamin_d_tested_100_days_ago_triggers(self):
        labs = [lab_days_ago("Vitamin D", 100), lab_days_ago("TSH", 10)]
        exams = generate_exam_schedule([], labs, today=TODAY)
        assert types_of(exams) == ["vitamin_d_panel"]
        assert exams[0].scheduled_date == "2026-03-08"
        assert exams[0].triggered_by == "vitd_quarterly_lightskin_portugal"

    def test_vitamin_d_tested_89_days_ago_is_quiet(self):
        labs = [lab_days_ago("Vitamin D", 89), lab_days_ago("TSH", 10)]
        assert generate_exam_schedule([], labs, today=TODAY) == []

    def test_thyroid_fourteen_days_ahead(self):
        labs = [lab_days_ago("Vitamin D", 10)]
        exams = generate_exam_schedule([], labs, today=TODAY)
        assert types_of(exams) == ["thyroid_panel"]
        assert exams[0].scheduled_date == "2026-03-15"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Supplement triggers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestSupplementTriggers:

    def test_winfit_fires_zinc_and_autoimmune(self):
        exams = generate_exam_schedule(["Winfit"], fresh_baseline(), today=TODAY)
        assert types_of(exams) == ["zinc_copper_panel", "autoimmune_panel"]
        assert all(e.scheduled_date == "2026-03-08" for e in exams)

    def test_recent_zinc_only_fires_autoimmune(self):
        labs = fresh_baseline() + [lab_days_ago("Zinc", 30)]
        exams = generate_exam_schedule(["Zinco 25mg"], labs, today=TODAY)
        assert types_of(exams) == ["autoimmune_panel"]

    def test_magnesium_fires_cortisol_panel(self):
        exams = generate_exam_schedule(
            [SupplementInfo("Magnésio Bisglicinato")], fresh_baseline(), today=TODAY
        )
        assert types_of(exams) == ["magnesium_cortisol_panel"]
        assert exams[0].scheduled_date == "2026-03-15"

    def test_vitamin_c_fires_iron_panel(self):
        exams = generate_exam_schedule(["Vitamina C 1000"], fresh_baseline(), today=TODAY)
        assert types_of(exams) == ["iron_panel"]

    def test_unknown_supplement_fires_nothing(self):
        assert generate_exam_schedule(["Omega 3"], fresh_baseline(), today=TODAY) == []

    def test_first_matching_category_wins(self):
        # matches both zinc and vitamin C keywords; only zinc rules fire
        exams = generate_exam_schedule(["Zinc + Vitamin C"], fresh_baseline(), today=TODAY)
        assert types_of(exams) == ["zinc_copper_panel", "autoimmune_panel"]

    def test_same_category_twice_is_not_deduplicated(self):
        exams = generate_exam_schedule(["Winfit", "Zinco"], fresh_baseline(), today=TODAY)
        assert types_of(exams) == [
            "zinc_copper_panel", "autoimmune_panel",
            "zinc_copper_panel", "autoimmune_panel",
        ]

    def test_supplement_exams_come_before_baseline(self):
        exams = generate_exam_schedule(["Magnesium"], [], today=TODAY)
        assert types_of(exams) == [
            "magnesium_cortisol_panel", "vitamin_d_panel", "thyroid_panel",
        ]

    def test_tuple_labs_accepted(self):
        labs = [("Vitamin D", "2026-02-20"), ("TSH", "2026-02-20")]
        assert generate_exam_schedule([], labs, today=TODAY) == []


class TestThresholdBoundaries:
    """An exam fires once ``days // 30`` reaches the rule's threshold."""

    ALL_MARKERS = ("Vitamin D", "TSH", "Zinc", "ANA", "Magnesium", "Ferritin")

    def labs_with(self, marker: str, days: int) -> list[LabInfo]:
        return [
            lab_days_ago(m, days if m == marker else 10)
            for m in self.ALL_MARKERS
        ]

    @pytest.mark.parametrize("supplements,marker,threshold,exam_type", [
        (["Winfit"], "Zinc", 3, "zinc_copper_panel"),
        (["Winfit"], "ANA", 6, "autoimmune_panel"),
        (["Magnésio Bisglicinato"], "Magnesium", 4, "magnesium_cortisol_panel"),
        (["Vitamina C"], "Ferritin", 6, "iron_panel"),
        ([], "Vitamin D", 3, "vitamin_d_panel"),
        ([], "TSH", 6, "thyroid_panel"),
    ])
    @pytest.mark.parametrize("offset,fires", [(-1, False), (0, True)])
    def test_boundary(self, supplements, marker, threshold, exam_type, offset, fires):
        labs = self.labs_with(marker, threshold * 30 + offset)
        exams = generate_exam_schedule(supplements, labs, today=TODAY)
        assert types_of(exams) == ([exam_type] if fires else [])


class TestPurity:

    def test_same_inputs_same_output(self):
        args = (["Winfit", "Magnésio"], [lab_days_ago("Zinc", 200)])
        first = generate_exam_schedule(*args, today=TODAY)
        second = generate_exam_schedule(*args, today=TODAY)
        assert [e.model_dump() for e in first] == [e.model_dump() for e in second]

    def test_exams_are_unsaved(self):
        exams = generate_exam_schedule([], [], today=TODAY)
        assert all(e.id is None and e.completed is False for e in exams)


class TestExamLabel:

    @pytest.mark.parametrize("exam_type,label", [
        ("vitamin_d_panel", "Vitamina D"),
        ("thyroid_panel", "Tiroide (TSH)"),
        ("custom_panel", "custom panel"),
    ])
    def test_labels(self, exam_type, label):
        assert exam_label(exam_type) == label
