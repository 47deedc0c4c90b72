"""Match Acceptance Policy - decides which ranked search hits an applicant sees.

Invariants:
    - Candidates arrive ranked by score, best first
    - Quality gate: best.score < probe_count - 1 returns nothing
    - Inclusion band: every candidate with score >= floor(best.score), rank order kept
    - Pure: no IO, never mutates the candidates
"""

import math
from collections.abc import Sequence

from lostfound.core.found_object import FoundObject, ObjectField


def build_text_query(probes: Sequence[ObjectField]) -> str:
    """Concatenate probe values into the store's free-text query."""
    return " ".join(probe.value for probe in probes)


def passes_quality_gate(best_score: float, probe_count: int) -> bool:
    return best_score >= probe_count - 1


def accept_matches(
    candidates: Sequence[FoundObject], probe_count: int,
) -> list[FoundObject]:
    """Apply the quality gate, then surface the whole top integer band."""
    if not candidates:
        return []

    best_score = candidates[0].score or 0.0
    if not passes_quality_gate(best_score, probe_count):
        return []

    threshold = math.floor(best_score)
    return [c for c in candidates if (c.score or 0.0) >= threshold]
