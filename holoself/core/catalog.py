"""
Supplement Protocol Catalog — the fixed list of supplements the agent tracks.

Single source of truth for "what supplements exist".  Both the exam
scheduler (via logged supplement names) and the message selector (via
reminders and adherence) read from this table.  Hour ranges are inclusive.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SupplementProtocol:
    """One catalog entry: what to take, how much and when."""

    name: str
    dosage: str
    category: str  # "morning" | "afternoon" | "night"
    start_hour: int
    end_hour: int
    benefit: str = ""

    def is_due(self, hour: int) -> bool:
        return self.start_hour <= hour <= self.end_hour

    def as_payload(self) -> dict[str, str]:
        """Payload for a ``log_supplement`` action pre-filled from this entry."""
        return {
            "name": self.name,
            "dosage": self.dosage,
            "category": self.category,
        }


PROTOCOL_CATALOG: tuple[SupplementProtocol, ...] = (
    SupplementProtocol(
        name="Winfit",
        dosage="1 saqueta",
        category="morning",
        start_hour=8,
        end_hour=11,
        benefit=(
            "1000mg de Vitamina C + Zinco para fortalecer o sistema "
            "imunitário e apoiar a recuperação capilar"
        ),
    ),
    SupplementProtocol(
        name="Magnésio Bisglicinato",
        dosage="1 cápsula",
        category="night",
        start_hour=22,
        end_hour=23,
        benefit="proteger os folículos capilares e o sistema nervoso",
    ),
    SupplementProtocol(
        name="Noxarem (Melatonina 3mg)",
        dosage="1 comprimido",
        category="night",
        start_hour=0,
        end_hour=1,
        benefit="sincronizar o ciclo circadiano",
    ),
)


def find_protocol(
    name: str,
    catalog: tuple[SupplementProtocol, ...] = PROTOCOL_CATALOG,
) -> SupplementProtocol | None:
    """Exact (case-insensitive) lookup of a catalog entry by name."""
    wanted = name.strip().lower()
    for protocol in catalog:
        if protocol.name.lower() == wanted:
            return protocol
    return None
