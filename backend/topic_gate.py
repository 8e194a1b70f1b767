"""Topic gate deciding which chat messages may reach the language model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

from . import config

AGRICULTURE_TERMS: Tuple[str, ...] = (
    "agriculture",
    "farming",
    "crops",
    "livestock",
    "irrigation",
    "fertilizer",
    "pesticides",
    "soil",
    "harvest",
    "planting",
    "yield",
    "farm equipment",
    "weather",
    "climate",
    "sustainability",
    "organic farming",
    "agribusiness",
    "food production",
    "crop rotation",
    "agricultural economics",
    "agricultural technology",
    "agricultural policy",
)

FEATURE_TERMS: Tuple[str, ...] = (
    "business feasibility",
    "forecasting",
    "maximization",
    "minimization",
    "cultivation",
    "seasonal commodity",
    "annual commodity",
    "business model",
    "swot analysis",
)

INDONESIAN_TERMS: Tuple[str, ...] = (
    "pertanian",
    "petani",
    "bertani",
    "tanaman",
    "panen",
    "pupuk",
    "irigasi",
    "peternakan",
    "ternak",
    "sawah",
    "perkebunan",
    "kebun",
    "bibit",
    "benih",
    "hama",
    "lahan",
    "agribisnis",
    "bisnis",
    "usaha",
    "kelayakan",
    "peramalan",
    "permintaan",
    "keuntungan",
    "laba",
    "modal",
    "investasi",
    "biaya",
    "harga",
    "penjualan",
    "pemasaran",
    "pasar",
    "produksi",
    "komoditas",
)

DEFAULT_REFUSAL = (
    "I'm specialized in agricultural topics. Could you please ask me something related to farming, "
    "crops, agricultural business, or other farming topics?"
)


def _normalize(terms: Iterable[str]) -> Tuple[str, ...]:
    seen = []
    for term in terms:
        cleaned = term.strip().lower()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return tuple(seen)


@dataclass(frozen=True)
class TopicPolicy:
    """Allow/deny lists for chat messages.

    A message is on topic when it contains none of ``denied_terms`` and at
    least one of ``allowed_terms`` or ``feature_terms``. Matching is a
    case-insensitive substring test, so "crops" also matches "cropsharing".
    """

    allowed_terms: Tuple[str, ...]
    feature_terms: Tuple[str, ...] = FEATURE_TERMS
    denied_terms: Tuple[str, ...] = ()
    refusal: str = DEFAULT_REFUSAL

    def __post_init__(self) -> None:
        object.__setattr__(self, "allowed_terms", _normalize(self.allowed_terms))
        object.__setattr__(self, "feature_terms", _normalize(self.feature_terms))
        object.__setattr__(self, "denied_terms", _normalize(self.denied_terms))

    def matched_term(self, message: Optional[str]) -> Optional[str]:
        """Return the first allowed or feature term found in ``message``."""
        text = (message or "").lower()
        for term in self.allowed_terms + self.feature_terms:
            if term in text:
                return term
        return None

    def is_denied(self, message: Optional[str]) -> bool:
        text = (message or "").lower()
        return any(term in text for term in self.denied_terms)

    def is_on_topic(self, message: Optional[str]) -> bool:
        if self.is_denied(message):
            return False
        return self.matched_term(message) is not None


def build_policy(
    *,
    include_indonesian: bool = True,
    extra_terms: Iterable[str] = (),
    denied_terms: Iterable[str] = (),
    refusal: str = DEFAULT_REFUSAL,
) -> TopicPolicy:
    allowed = list(AGRICULTURE_TERMS)
    if include_indonesian:
        allowed.extend(INDONESIAN_TERMS)
    allowed.extend(extra_terms)
    return TopicPolicy(
        allowed_terms=tuple(allowed),
        denied_terms=tuple(denied_terms),
        refusal=refusal,
    )


def default_policy() -> TopicPolicy:
    """Policy assembled from the ``TOPIC_GATE_*`` settings."""
    return build_policy(
        include_indonesian=config.TOPIC_GATE_INCLUDE_INDONESIAN,
        extra_terms=config.TOPIC_GATE_EXTRA_TERMS,
        denied_terms=config.TOPIC_GATE_DENIED_TERMS,
    )
