"""
Health Agent — the HoloSelf assistant's decision entry points.

Reads facts from the ``HealthStore``, hands them to the pure core functions
(message selector, exam scheduler) and writes back confirmed actions.

Degradation rules for ``get_message``, ``exam_schedule`` and ``daily_stats``:
  - any storage lookup that fails is logged and replaced with its safe
    default ("not taken", no exams, no transcript, empty lab history);
    the computation continues
  - the LLM only runs after every storage read is done, and any failure
    or timeout keeps the canned text
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Callable, Optional, TypeVar

from holoself.core.catalog import PROTOCOL_CATALOG, SupplementProtocol
from holoself.core.daily_summary import summarize_day
from holoself.core.exam_scheduler import generate_exam_schedule
from holoself.core.message_selector import (
    AgentContext,
    build_phrasing_prompt,
    select_agent_message,
)
from holoself.schemas.health import (
    ActionType,
    AgentMessage,
    DailyStats,
    ScheduledExam,
    SupplementEntry,
)
from holoself.settings import AppSettings
from holoself.storage.database import VOICE_TRANSCRIPT, HealthStore

logger = logging.getLogger("holoself.agents.health_agent")

T = TypeVar("T")

PHRASING_MAX_TOKENS = 120
PHRASING_TEMPERATURE = 0.3


class UnknownActionError(Exception):
    pass


class HealthAgent:
    """
    Usage:
        agent = HealthAgent(store, llm=bridge, settings=settings)
        message = await agent.get_message()
        agent.execute_action("log_supplement", message.action.payload)
    """

    def __init__(
        self,
        store: HealthStore,
        llm=None,
        settings: Optional[AppSettings] = None,
        catalog: tuple[SupplementProtocol, ...] = PROTOCOL_CATALOG,
    ) -> None:
        self.store = store
        self._llm = llm
        self._settings = settings or AppSettings()
        self.catalog = catalog

    # ── Message selection ──

    def gather_context(self, now: datetime) -> AgentContext:
        """Collect selector inputs; each failed lookup falls back to its default."""
        today = now.date()
        taken_today = {
            protocol.name: self._safe(
                f"is_supplement_taken({protocol.name})",
                False,
                self.store.is_supplement_taken,
                protocol.name,
                today,
            )
            for protocol in self.catalog
        }
        exams = self._safe("upcoming_incomplete_exams", [], self.store.upcoming_incomplete_exams)
        transcript = self._safe(
            "recent_voice_transcript",
            None,
            self.store.recent_voice_transcript,
            self._settings.voice_transcript_window_seconds,
        )
        return AgentContext(
            now=now,
            taken_today=taken_today,
            upcoming_exams=exams,
            voice_transcript=transcript,
            catalog=self.catalog,
        )

    async def get_message(self, now: Optional[datetime] = None) -> AgentMessage:
        now = now or datetime.now()
        ctx = await asyncio.to_thread(self.gather_context, now)
        selection = select_agent_message(ctx)
        logger.info("Agent message: rule=%s category=%s", selection.rule, selection.message.category.value)

        if selection.rephrasable and self._llm is not None and self._llm.configured:
            return await self._rephrase(ctx, selection.message)
        return selection.message

    async def _rephrase(self, ctx: AgentContext, message: AgentMessage) -> AgentMessage:
        prompt = build_phrasing_prompt(ctx, message)
        try:
            text = await self._llm.generate(
                prompt,
                max_tokens=PHRASING_MAX_TOKENS,
                temperature=PHRASING_TEMPERATURE,
                timeout=self._settings.llm_timeout_seconds,
            )
        except Exception as e:
            logger.warning("LLM phrasing failed, keeping canned message: %s", e)
            return message

        if not text or not text.strip():
            logger.warning("LLM phrasing unavailable, keeping canned message")
            return message
        return message.model_copy(update={"text": text.strip()})

    # ── Actions ──

    def execute_action(
        self,
        action_type: str,
        payload: dict[str, Any],
        now: Optional[datetime] = None,
    ) -> str:
        """Run an agent-suggested action after the user confirmed it."""
        if action_type == ActionType.LOG_SUPPLEMENT.value:
            name = str(payload.get("name") or "Unknown")
            entry = SupplementEntry(
                name=name,
                dosage=str(payload.get("dosage") or ""),
                taken_at=(now or datetime.now().astimezone()).isoformat(timespec="seconds"),
                category=str(payload.get("category") or "as_needed"),
                notes=payload.get("notes"),
            )
            self.store.insert_supplement(entry)
            logger.info("Logged supplement %s via agent action", name)
            return f"{name} registado com sucesso."

        if action_type == ActionType.SCHEDULE_EXAM.value:
            exam = ScheduledExam.model_validate(payload)
            self.store.insert_scheduled_exam(exam)
            return f"Exame {exam.exam_type} agendado para {exam.scheduled_date}."

        raise UnknownActionError(f"Ação desconhecida: {action_type}")

    def record_transcript(self, transcript: str) -> int:
        return self.store.insert_memory(transcript, VOICE_TRANSCRIPT)

    # ── Exams ──

    def exam_schedule(self, today: Optional[date] = None) -> list[ScheduledExam]:
        """Predicted exams from the last 90 days of supplements and the lab history.

        A failed lookup counts as no supplements / no lab history, so the
        baseline checks are still recommended.
        """
        supplements = self._safe("active_supplement_names", [], self.store.active_supplement_names, 90)
        labs = self._safe("latest_test_date_per_marker", [], self.store.latest_test_date_per_marker)
        return generate_exam_schedule(supplements, labs, today=today)

    def save_exams(
        self, exams: list[ScheduledExam], skip_duplicates: bool = True
    ) -> list[int]:
        """Persist exams; with ``skip_duplicates`` a pending (type, trigger) pair is not re-inserted."""
        ids = []
        for exam in exams:
            if skip_duplicates and self.store.has_pending_exam(exam.exam_type, exam.triggered_by):
                logger.info("Skipping duplicate exam %s (%s)", exam.exam_type, exam.triggered_by)
                continue
            ids.append(self.store.insert_scheduled_exam(exam))
        return ids

    # ── Daily stats ──

    def daily_stats(self, today: Optional[date] = None) -> DailyStats:
        today = today or date.today()
        taken = sum(
            1 for protocol in self.catalog
            if self._safe(
                f"is_supplement_taken({protocol.name})",
                False,
                self.store.is_supplement_taken,
                protocol.name,
                today,
            )
        )
        total = len(self.catalog)
        stats = DailyStats(
            date=today.strftime("%Y-%m-%d"),
            adherence_percent=(100 * taken) // total if total else 0,
            supplements_taken=taken,
            supplements_total=total,
            voice_commands=self._safe("count_memory", 0, self.store.count_memory, VOICE_TRANSCRIPT, today),
            vitals_recorded=self._safe("count_vitals_on", 0, self.store.count_vitals_on, today),
            pending_exams=len(self._safe("upcoming_incomplete_exams", [], self.store.upcoming_incomplete_exams)),
        )
        stats.summary = summarize_day(stats)
        return stats

    # ── Internal ──

    @staticmethod
    def _safe(label: str, default: T, fn: Callable[..., T], *args: Any) -> T:
        try:
            return fn(*args)
        except Exception as e:
            logger.warning("%s failed, using default %r: %s", label, default, e)
            return default
