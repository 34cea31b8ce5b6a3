from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any

from ..config import ROOM_CAPACITY, ROOM_DEFAULT_TOPIC, ROOM_TAG_LIMIT, ROOM_VIBE_LABELS
from ..repo import RoomStore

logger = logging.getLogger(__name__)


@dataclass
class RoomCandidate:
    room_id: str
    overlap: int
    score: float


def normalize_tags(values: Any) -> list[str]:
    if not isinstance(values, (list, tuple)):
        return []
    out: list[str] = []
    for value in values:
        v = str(value or "").strip().lower()
        if v and v not in out:
            out.append(v)
    return out


def rank_rooms(
    rooms: list[dict[str, Any]],
    interests: list[str],
    rng: random.Random,
    capacity: int = ROOM_CAPACITY,
) -> list[RoomCandidate]:
    """Rooms with a free seat and at least one shared tag, best first.

    Each room scores ``2 * overlap + tiebreak`` with ``tiebreak`` drawn from
    ``rng.random()``. Rooms sharing no tag with ``interests`` are dropped, so
    an empty result means a new room should be created.
    """
    wanted = set(normalize_tags(interests))
    ranked: list[RoomCandidate] = []
    for room in rooms:
        if int(room.get("member_count") or 0) >= int(room.get("capacity") or capacity):
            continue
        overlap = len(set(normalize_tags(room.get("tags"))) & wanted)
        if overlap == 0:
            continue
        ranked.append(RoomCandidate(room_id=str(room["id"]), overlap=overlap, score=2 * overlap + rng.random()))
    ranked.sort(key=lambda c: c.score, reverse=True)
    return ranked


def new_room_name(interests: list[str], rng: random.Random) -> str:
    tags = normalize_tags(interests)
    topic = tags[0] if tags else ROOM_DEFAULT_TOPIC
    return f"The {topic[:1].upper() + topic[1:]} {rng.choice(ROOM_VIBE_LABELS)}"


class RoomPlacementEngine:
    """Puts a freshly onboarded user into a shared room.

    The best existing room is claimed with a conditional seat increment in
    the store; a lost race moves on to the next candidate, and when none is
    left a new room tagged with the user's top interests is created.
    """

    def __init__(self, rooms: RoomStore, rng: random.Random | None = None, capacity: int = ROOM_CAPACITY) -> None:
        self.rooms = rooms
        self.rng = rng or random.Random()
        self.capacity = capacity

    def place(self, user_id: str, interests: list[str], quiz_answers: list[int] | None = None) -> str:
        existing = self.rooms.get_room_for_user(user_id)
        if existing:
            logger.info("[PLACEMENT] user=%s already placed room=%s", user_id, existing)
            return existing

        tags = normalize_tags(interests)
        candidates = rank_rooms(self.rooms.list_open_rooms(), tags, self.rng, capacity=self.capacity)
        for candidate in candidates:
            if self.rooms.claim_seat(candidate.room_id, user_id):
                logger.info(
                    "[PLACEMENT] user=%s joined room=%s overlap=%s score=%.3f",
                    user_id,
                    candidate.room_id,
                    candidate.overlap,
                    candidate.score,
                )
                return candidate.room_id
            logger.info("[PLACEMENT] room=%s filled before user=%s could join", candidate.room_id, user_id)

        room = self.rooms.create_room_with_member(
            name=new_room_name(tags, self.rng),
            tags=tags[:ROOM_TAG_LIMIT],
            user_id=user_id,
            capacity=self.capacity,
        )
        logger.info("[PLACEMENT] user=%s founded room=%s name=%r tags=%s", user_id, room["id"], room["name"], room["tags"])
        return str(room["id"])
