"""
Voice intent classification — keyword rules over a transcript.

Order matters: a status request wins over a logging intent, and anything
unrecognised is acknowledged by echoing the transcript back.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from holoself.core.catalog import PROTOCOL_CATALOG, SupplementProtocol


class VoiceIntentKind(str, Enum):
    STATUS = "status"
    LOG_SUPPLEMENT = "log_supplement"
    ACKNOWLEDGE = "acknowledge"


STATUS_KEYWORDS: tuple[str, ...] = (
    "status",
    "estado",
    "relatório",
    "relatorio",
    "resumo",
    "como estou",
)

LOG_KEYWORDS: tuple[str, ...] = (
    "tomei",
    "tomar",
    "registar",
    "registra",
    "regista",
    "log",
    "took",
)


@dataclass(frozen=True)
class VoiceIntent:
    kind: VoiceIntentKind
    protocol: Optional[SupplementProtocol] = None


def classify(
    transcript: str,
    catalog: tuple[SupplementProtocol, ...] = PROTOCOL_CATALOG,
) -> VoiceIntent:
    text = transcript.lower()

    if any(k in text for k in STATUS_KEYWORDS):
        return VoiceIntent(VoiceIntentKind.STATUS)

    if any(k in text for k in LOG_KEYWORDS):
        protocol = mentioned_protocol(text, catalog)
        if protocol is not None:
            return VoiceIntent(VoiceIntentKind.LOG_SUPPLEMENT, protocol)

    return VoiceIntent(VoiceIntentKind.ACKNOWLEDGE)


def mentioned_protocol(
    text: str,
    catalog: tuple[SupplementProtocol, ...] = PROTOCOL_CATALOG,
) -> SupplementProtocol | None:
    """First catalog entry whose full name or leading word appears in ``text``.

    Speech-to-text rarely returns "Noxarem (Melatonina 3mg)" verbatim, so the
    leading word ("noxarem", "magnésio") is accepted as a mention too.
    """
    text = text.lower()
    for protocol in catalog:
        full = protocol.name.lower()
        head = full.split()[0] if full.split() else full
        if full in text or head in text:
            return protocol
    return None
