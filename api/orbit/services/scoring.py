from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Any, Iterable

from ..config import SCORING_CONFIG

_default_rng = random.Random()

GENERIC_INSIGHT = "Compatible energy patterns."


@dataclass
class FeedEntry:
    profile: dict[str, Any]
    match_score: int
    insight: str
    requested: bool


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


def _answer_vector(values: Any) -> list[int]:
    if not isinstance(values, (list, tuple)):
        return []
    return [_to_int(v) for v in values]


def score(
    vector_a: Iterable[Any] | None,
    vector_b: Iterable[Any] | None,
    rng: random.Random | None = None,
    cfg: dict[str, Any] | None = None,
) -> int:
    """Quiz compatibility as an integer percentage in ``[FLOOR, CEILING]``.

    Profiles created before the quiz existed have no answers; for those the
    score is drawn from ``[FALLBACK_MIN, FALLBACK_MAX)`` using ``rng``.
    """
    cfg = cfg or SCORING_CONFIG
    a = _answer_vector(list(vector_a) if vector_a is not None else None)
    b = _answer_vector(list(vector_b) if vector_b is not None else None)
    if not a or not b:
        return (rng or _default_rng).randrange(int(cfg["FALLBACK_MIN"]), int(cfg["FALLBACK_MAX"]))

    n = min(len(a), len(b))
    total_diff = sum(abs(a[i] - b[i]) for i in range(n))
    # half-up rounding: a diff of 1 costs 3 points, not 2
    raw = int(cfg["CEILING"]) - math.floor(total_diff * float(cfg["PENALTY_FACTOR"]) + 0.5)
    return max(int(cfg["FLOOR"]), min(int(cfg["CEILING"]), raw))


def shared_interests(interests_a: Iterable[str] | None, interests_b: Iterable[str] | None) -> list[str]:
    mine = {str(i) for i in (interests_a or [])}
    return sorted({str(i) for i in (interests_b or [])} & mine)


def insight(
    interests_a: Iterable[str] | None,
    interests_b: Iterable[str] | None,
    rng: random.Random | None = None,
) -> str:
    common = shared_interests(interests_a, interests_b)
    if not common:
        return GENERIC_INSIGHT
    return f"You both like {(rng or _default_rng).choice(common)}!"


def build_feed(
    viewer: dict[str, Any],
    candidates: list[dict[str, Any]],
    requested_ids: set[str] | None = None,
    rng: random.Random | None = None,
) -> list[FeedEntry]:
    viewer_id = str(viewer.get("id"))
    requested_ids = requested_ids or set()
    entries: list[FeedEntry] = []
    for candidate in candidates:
        cid = str(candidate.get("id"))
        if cid == viewer_id:
            continue
        entries.append(
            FeedEntry(
                profile=candidate,
                match_score=score(viewer.get("quiz_answers"), candidate.get("quiz_answers"), rng=rng),
                insight=insight(viewer.get("interests"), candidate.get("interests"), rng=rng),
                requested=cid in requested_ids,
            )
        )
    # stable sort keeps store order among equal scores
    entries.sort(key=lambda e: e.match_score, reverse=True)
    return entries
