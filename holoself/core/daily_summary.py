"""End-of-day summary text, spoken by the agent at night."""

from __future__ import annotations

from holoself.schemas.health import DailyStats


def _count(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def summarize_day(stats: DailyStats) -> str:
    parts = ["Relatório do dia."]

    pct = stats.adherence_percent
    if pct >= 90:
        parts.append(f"Aderência excelente: {pct}%.")
    elif pct >= 70:
        parts.append(f"Aderência boa: {pct}%.")
    else:
        parts.append(f"Aderência precisa melhorar: {pct}%.")

    if stats.vitals_recorded:
        parts.append(
            f"Registaste {_count(stats.vitals_recorded, 'sinal vital', 'sinais vitais')}."
        )

    if stats.voice_commands:
        parts.append(
            f"Usaste {_count(stats.voice_commands, 'comando', 'comandos')} de voz."
        )

    if stats.pending_exams:
        parts.append(
            f"Tens {_count(stats.pending_exams, 'exame', 'exames')} por realizar."
        )

    parts.append("Bom descanso. Amanhã continuamos.")
    return " ".join(parts)
