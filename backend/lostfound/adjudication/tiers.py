from __future__ import annotations

from lostfound.errors import ValidationError
from lostfound.models.claims import ConfidenceTier
from lostfound.settings import Settings


def derive_confidence_tier(
    proof_score: float,
    *,
    full_threshold: float,
    partial_threshold: float,
) -> ConfidenceTier:
    """Bucket a proof score when the scoring service sent no tier.

    Only the proof score is consulted; an AI confidence score never shifts
    the tier.
    """
    if proof_score >= full_threshold:
        return ConfidenceTier.FULL
    if proof_score >= partial_threshold:
        return ConfidenceTier.PARTIAL
    return ConfidenceTier.LOW


def resolve_confidence_tier(
    supplied: ConfidenceTier | str | None,
    proof_score: float,
    settings: Settings,
) -> ConfidenceTier:
    """Use the supplied tier verbatim, deriving one only when absent."""
    if supplied is None or supplied == "":
        return derive_confidence_tier(
            proof_score,
            full_threshold=settings.tier_full_threshold,
            partial_threshold=settings.tier_partial_threshold,
        )
    try:
        return ConfidenceTier(supplied)
    except ValueError as e:
        raise ValidationError(f"Unknown confidence tier: {supplied}") from e
