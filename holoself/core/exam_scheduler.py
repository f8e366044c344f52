"""
Exam Scheduler — predictive lab-exam recommendations.

Maps the currently active supplements and the most recent test date of
each lab marker to a list of exams worth booking.  Pure function: the
same inputs (and the same ``today``) always give the same list in the
same order.

Evaluation order:
  1. For each active supplement, the FIRST matching trigger category fires
     its marker rules (a name matching several categories only fires one)
  2. Then the unconditional checks: vitamin D, then thyroid
  3. Nothing is de-duplicated — two supplements in the same category both
     append their exams.  Callers decide what to persist.

Staleness is measured as ``days_since // 30`` (not calendar months).  A
marker never tested, or with an unparseable date, counts as 999 months old
so it always triggers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Sequence, Union

from holoself.schemas.health import ScheduledExam

logger = logging.getLogger("holoself.core.exam_scheduler")

NEVER_TESTED_MONTHS = 999
DAYS_PER_MONTH = 30


@dataclass(frozen=True)
class SupplementInfo:
    name: str
    started_date: str = ""


@dataclass(frozen=True)
class LabInfo:
    marker: str
    date: str  # YYYY-MM-DD


@dataclass(frozen=True)
class ExamRule:
    """Recommend ``exam_type`` when ``marker`` is ``threshold_months`` stale."""

    marker: str
    threshold_months: int
    exam_type: str
    days_ahead: int
    reason: str
    triggered_by: str


# ── Trigger categories: supplement-name keywords → marker rules ──
# (category, name keywords, rules fired in order)
TRIGGER_CATEGORIES: list[tuple[str, tuple[str, ...], tuple[ExamRule, ...]]] = [
    (
        "zinc",
        ("zinco", "zinc", "winfit"),
        (
            ExamRule(
                marker="zinc",
                threshold_months=3,
                exam_type="zinc_copper_panel",
                days_ahead=7,
                reason="Monitorizar rácio Zinco/Cobre após 3 meses de suplementação com Winfit.",
                triggered_by="zinc_supplementation_3mo",
            ),
            ExamRule(
                marker="ana",
                threshold_months=6,
                exam_type="autoimmune_panel",
                days_ahead=7,
                reason="Painel autoimune (ANA) para monitorizar Alopecia Areata — check semestral.",
                triggered_by="alopecia_areata_6mo",
            ),
        ),
    ),
    (
        "magnesium",
        ("magnésio", "magnesium", "bisglicinato"),
        (
            ExamRule(
                marker="magnesium",
                threshold_months=4,
                exam_type="magnesium_cortisol_panel",
                days_ahead=14,
                reason="Verificar Magnésio sérico + Cortisol para avaliar recuperação do sistema nervoso.",
                triggered_by="magnesium_supplementation_4mo",
            ),
        ),
    ),
    (
        "vitamin_c",
        ("vitamina c", "vitamin c", "vit c"),
        (
            ExamRule(
                marker="ferritin",
                threshold_months=6,
                exam_type="iron_panel",
                days_ahead=14,
                reason="Painel de ferro (Ferritina, Ferro sérico) — Vitamina C aumenta absorção de ferro.",
                triggered_by="vitc_iron_absorption_6mo",
            ),
        ),
    ),
]

# ── Unconditional checks, appended after supplement rules in this order ──
BASELINE_RULES: tuple[ExamRule, ...] = (
    ExamRule(
        marker="vitamin d",
        threshold_months=3,
        exam_type="vitamin_d_panel",
        days_ahead=7,
        reason=(
            "Verificação trimestral de Vitamina D — essencial para fototipo lightskin "
            "em Portugal (latitude alta, UV baixo no inverno)."
        ),
        triggered_by="vitd_quarterly_lightskin_portugal",
    ),
    ExamRule(
        marker="tsh",
        threshold_months=6,
        exam_type="thyroid_panel",
        days_ahead=14,
        reason="Painel tiroide (TSH, T3, T4) — monitorizar impacto do burnout crónico na tiroide.",
        triggered_by="burnout_thyroid_6mo",
    ),
)


EXAM_LABELS: dict[str, str] = {
    "vitamin_d_panel": "Vitamina D",
    "zinc_copper_panel": "Zinco / Cobre",
    "autoimmune_panel": "Autoimune (ANA)",
    "magnesium_cortisol_panel": "Magnésio / Cortisol",
    "iron_panel": "Ferro / Ferritina",
    "thyroid_panel": "Tiroide (TSH)",
}


def exam_label(exam_type: str) -> str:
    return EXAM_LABELS.get(exam_type, exam_type.replace("_", " "))


SupplementLike = Union[SupplementInfo, str]
LabLike = Union[LabInfo, tuple[str, str]]


def generate_exam_schedule(
    active_supplements: Sequence[SupplementLike],
    latest_lab_dates: Sequence[LabLike],
    today: date | None = None,
) -> list[ScheduledExam]:
    """
    Build the recommended exam list.

    Args:
        active_supplements: supplements logged recently (names or SupplementInfo)
        latest_lab_dates: most recent test date per marker
        today: reference date, defaults to the local date

    Returns:
        ScheduledExam list, supplement-triggered first, baseline checks last
    """
    today = today or date.today()
    labs = [_as_lab(lab) for lab in latest_lab_dates]
    exams: list[ScheduledExam] = []

    for supplement in active_supplements:
        name = _supplement_name(supplement).lower()
        rules = _match_category(name)
        for rule in rules:
            exam = _apply_rule(rule, labs, today)
            if exam is not None:
                exams.append(exam)

    for rule in BASELINE_RULES:
        exam = _apply_rule(rule, labs, today)
        if exam is not None:
            exams.append(exam)

    logger.debug(
        "Exam schedule: %d supplements, %d markers → %d exams",
        len(active_supplements), len(labs), len(exams),
    )
    return exams


def months_since(marker: str, labs: Iterable[LabInfo], today: date) -> int:
    """Whole 30-day periods since ``marker`` was last tested (999 if never)."""
    key = marker.lower()
    lab = next((entry for entry in labs if key in entry.marker.lower()), None)
    if lab is None:
        return NEVER_TESTED_MONTHS

    tested = _parse_date(lab.date)
    if tested is None:
        return NEVER_TESTED_MONTHS
    return (today - tested).days // DAYS_PER_MONTH


# ── Internal ──


def _match_category(name: str) -> tuple[ExamRule, ...]:
    for _category, keywords, rules in TRIGGER_CATEGORIES:
        if any(k in name for k in keywords):
            return rules
    return ()


def _apply_rule(
    rule: ExamRule, labs: list[LabInfo], today: date
) -> ScheduledExam | None:
    if months_since(rule.marker, labs, today) < rule.threshold_months:
        return None
    return ScheduledExam(
        exam_type=rule.exam_type,
        reason=rule.reason,
        scheduled_date=(today + timedelta(days=rule.days_ahead)).strftime("%Y-%m-%d"),
        triggered_by=rule.triggered_by,
    )


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
    except (ValueError, AttributeError):
        return None


def _supplement_name(supplement: SupplementLike) -> str:
    if isinstance(supplement, SupplementInfo):
        return supplement.name
    return str(supplement)


def _as_lab(lab: LabLike) -> LabInfo:
    if isinstance(lab, LabInfo):
        return lab
    marker, tested = lab
    return LabInfo(marker=str(marker), date=tested or "")
