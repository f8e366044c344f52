"""
Agent Message Selector — picks the one contextual message to show.

Strict priority cascade: ``MESSAGE_RULES`` is evaluated top to bottom and
the first rule whose predicate holds builds the message.

  1. voice             — a transcript from the last 30 seconds
  2. pending_reminder  — first catalog supplement due this hour and not taken
  3. full_adherence    — every catalog supplement taken today
  4. upcoming_exam     — soonest incomplete scheduled exam
  5. morning / afternoon / evening / stable — time-of-day fallbacks

Calm Technology: never alarming, always solution-oriented.  Rules 1–2
carry a structured ``log_supplement`` action and are never rephrased;
rules 3–5 may be rephrased by the LLM (see ``HealthAgent``), with the
canned text here as the fallback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from holoself.core.catalog import PROTOCOL_CATALOG, SupplementProtocol
from holoself.core.exam_scheduler import exam_label
from holoself.core.voice_intent import VoiceIntentKind, classify
from holoself.schemas.health import (
    ActionType,
    AgentAction,
    AgentMessage,
    MessageCategory,
    Priority,
    ScheduledExam,
)

logger = logging.getLogger("holoself.core.message_selector")


@dataclass
class AgentContext:
    """Everything the selector needs, already fetched from storage."""

    now: datetime
    taken_today: dict[str, bool] = field(default_factory=dict)
    upcoming_exams: list[ScheduledExam] = field(default_factory=list)
    voice_transcript: Optional[str] = None
    catalog: tuple[SupplementProtocol, ...] = PROTOCOL_CATALOG

    @property
    def hour(self) -> int:
        return self.now.hour

    @property
    def total(self) -> int:
        return len(self.catalog)

    @property
    def taken_names(self) -> list[str]:
        return [p.name for p in self.catalog if self.taken_today.get(p.name, False)]

    @property
    def pending_names(self) -> list[str]:
        return [p.name for p in self.catalog if not self.taken_today.get(p.name, False)]

    @property
    def taken_count(self) -> int:
        return len(self.taken_names)

    @property
    def adherence_percent(self) -> int:
        if self.total == 0:
            return 0
        return (100 * self.taken_count) // self.total

    @property
    def exam_context(self) -> str:
        if not self.upcoming_exams:
            return "Sem exames pendentes."
        exam = self.upcoming_exams[0]
        return f"Próximo exame: {exam_label(exam.exam_type)} a {exam.scheduled_date}."


@dataclass(frozen=True)
class MessageRule:
    name: str
    predicate: Callable[[AgentContext], bool]
    build: Callable[[AgentContext], AgentMessage]
    rephrasable: bool = False


@dataclass(frozen=True)
class MessageSelection:
    rule: str
    message: AgentMessage
    rephrasable: bool


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Predicates
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _has_voice(ctx: AgentContext) -> bool:
    return bool(ctx.voice_transcript and ctx.voice_transcript.strip())


def _first_pending(ctx: AgentContext) -> SupplementProtocol | None:
    for protocol in ctx.catalog:
        if protocol.is_due(ctx.hour) and not ctx.taken_today.get(protocol.name, False):
            return protocol
    return None


def _has_pending(ctx: AgentContext) -> bool:
    return _first_pending(ctx) is not None


def _all_taken(ctx: AgentContext) -> bool:
    return ctx.total > 0 and ctx.taken_count == ctx.total


def _has_exam(ctx: AgentContext) -> bool:
    return bool(ctx.upcoming_exams)


def _hours(start: int, end: int) -> Callable[[AgentContext], bool]:
    return lambda ctx: start <= ctx.hour <= end


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Builders
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _log_action(protocol: SupplementProtocol) -> AgentAction:
    return AgentAction(
        action_type=ActionType.LOG_SUPPLEMENT,
        payload=protocol.as_payload(),
    )


def adherence_report(ctx: AgentContext) -> str:
    pending = ", ".join(ctx.pending_names) or "nenhum"
    return (
        f"Relatório: {ctx.taken_count}/{ctx.total} suplementos tomados hoje "
        f"({ctx.adherence_percent}%). Pendentes: {pending}. {ctx.exam_context}"
    )


def _build_voice(ctx: AgentContext) -> AgentMessage:
    transcript = (ctx.voice_transcript or "").strip()
    intent = classify(transcript, ctx.catalog)

    if intent.kind == VoiceIntentKind.STATUS:
        return AgentMessage(
            text=adherence_report(ctx),
            category=MessageCategory.VOICE_RESPONSE,
            priority=Priority.HIGH,
        )

    if intent.kind == VoiceIntentKind.LOG_SUPPLEMENT and intent.protocol is not None:
        protocol = intent.protocol
        return AgentMessage(
            text=f"Entendido. Confirma o registo de {protocol.name} ({protocol.dosage}).",
            category=MessageCategory.VOICE_RESPONSE,
            priority=Priority.HIGH,
            action=_log_action(protocol),
        )

    return AgentMessage(
        text=f"Ouvi: \"{transcript}\". Estou a acompanhar.",
        category=MessageCategory.VOICE_RESPONSE,
        priority=Priority.MEDIUM,
    )


def _build_reminder(ctx: AgentContext) -> AgentMessage:
    protocol = _first_pending(ctx)
    if protocol is None:
        raise LookupError(f"No supplement pending at {ctx.hour}h")
    text = f"Está na hora do {protocol.name} ({protocol.dosage})"
    if protocol.benefit:
        text += f" — {protocol.benefit}"
    return AgentMessage(
        text=text + ".",
        category=MessageCategory.SUPPLEMENT_REMINDER,
        priority=Priority.MEDIUM,
        action=_log_action(protocol),
    )


def _build_full_adherence(ctx: AgentContext) -> AgentMessage:
    return AgentMessage(
        text=(
            f"Protocolo completo: {ctx.taken_count}/{ctx.total} suplementos tomados hoje. "
            "Sistema imunitário em carga. Foco total."
        ),
        category=MessageCategory.HEALTH_INSIGHT,
        priority=Priority.LOW,
    )


def _build_exam(ctx: AgentContext) -> AgentMessage:
    exam = ctx.upcoming_exams[0]
    return AgentMessage(
        text=(
            f"Próximo exame: {exam_label(exam.exam_type)} a {exam.scheduled_date}. "
            f"{exam.reason} Aderência de hoje: {ctx.adherence_percent}%."
        ),
        category=MessageCategory.SCHEDULE,
        priority=Priority.LOW,
    )


def _canned(category: MessageCategory, template: str) -> Callable[[AgentContext], AgentMessage]:
    def build(ctx: AgentContext) -> AgentMessage:
        return AgentMessage(
            text=template.format(adherence=ctx.adherence_percent),
            category=category,
            priority=Priority.LOW,
        )
    return build


MESSAGE_RULES: tuple[MessageRule, ...] = (
    MessageRule("voice", _has_voice, _build_voice),
    MessageRule("pending_reminder", _has_pending, _build_reminder),
    MessageRule("full_adherence", _all_taken, _build_full_adherence, rephrasable=True),
    MessageRule("upcoming_exam", _has_exam, _build_exam, rephrasable=True),
    MessageRule(
        "morning",
        _hours(8, 11),
        _canned(
            MessageCategory.CALM_NUDGE,
            "Bom dia. Aderência de hoje: {adherence}%. Um copo de água e três "
            "respirações profundas antes do próximo bloco de foco.",
        ),
        rephrasable=True,
    ),
    MessageRule(
        "afternoon",
        _hours(12, 17),
        _canned(
            MessageCategory.CALM_NUDGE,
            "Tarde em curso. Aderência de hoje: {adherence}%. Levanta-te e "
            "alonga durante dois minutos.",
        ),
        rephrasable=True,
    ),
    MessageRule(
        "evening",
        _hours(18, 21),
        _canned(
            MessageCategory.HEALTH_INSIGHT,
            "O dia está a fechar. Aderência de hoje: {adherence}%. Reduz a luz "
            "azul para preparar o sono.",
        ),
        rephrasable=True,
    ),
    MessageRule(
        "stable",
        lambda ctx: True,
        _canned(
            MessageCategory.HEALTH_INSIGHT,
            "Sistema estável. A monitorizar indicadores de recuperação. "
            "Aderência de hoje: {adherence}%.",
        ),
        rephrasable=True,
    ),
)


def select_agent_message(
    ctx: AgentContext,
    rules: tuple[MessageRule, ...] = MESSAGE_RULES,
) -> MessageSelection:
    """Evaluate ``rules`` in order and return the first match."""
    for rule in rules:
        if rule.predicate(ctx):
            logger.debug("Agent message rule fired: %s", rule.name)
            return MessageSelection(
                rule=rule.name,
                message=rule.build(ctx),
                rephrasable=rule.rephrasable,
            )
    # the catch-all rule always matches; only reachable with custom rules
    raise LookupError("No message rule matched")


def build_phrasing_prompt(ctx: AgentContext, message: AgentMessage) -> str:
    """Prompt asking the LLM to rephrase a canned message with live context."""
    taken = ", ".join(ctx.taken_names) or "nenhum"
    pending = ", ".join(ctx.pending_names) or "nenhum"
    return (
        "És o HoloSelf, um assistente de saúde pessoal calmo e nunca alarmista.\n"
        "Escreve UMA mensagem curta (máximo 2 frases) em português de Portugal, "
        "orientada para soluções.\n\n"
        f"Hora atual: {ctx.now.strftime('%H:%M')}\n"
        f"Aderência de hoje: {ctx.adherence_percent}% ({ctx.taken_count}/{ctx.total})\n"
        f"Suplementos tomados: {taken}\n"
        f"Suplementos pendentes: {pending}\n"
        f"{ctx.exam_context}\n\n"
        f"Mensagem base: {message.text}\n\n"
        "Responde apenas com o texto da mensagem."
    )
