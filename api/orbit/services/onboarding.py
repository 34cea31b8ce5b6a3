from __future__ import annotations

import logging
import random
from typing import Any

from ..config import INTEREST_CATALOG, MAX_AGE, MAX_INTERESTS, MIN_AGE, QUIZ_LENGTH, QUIZ_OPTION_COUNT
from ..errors import ConflictError, ValidationError
from ..repo import ProfileStore
from .placement import RoomPlacementEngine, normalize_tags

logger = logging.getLogger(__name__)

USERNAME_ADJECTIVES = [
    "Neon", "Chill", "Vibe", "Cosmic", "Retro", "Hyper", "Lunar", "Solar", "Silent", "Wild",
    "Epic", "Mystic", "Rapid", "Bold", "Bright", "Zen", "Frosty", "Digital", "Glitch", "Sonic",
]
USERNAME_NOUNS = [
    "Falcon", "Cactus", "Ninja", "Orbit", "Star", "Wolf", "Panda", "Tiger", "Fox", "Hawk",
    "Ghost", "Echo", "Spark", "Pulse", "Vortex", "Moon", "Comet", "Rocket", "Shadow", "Storm",
]


def generate_username(rng: random.Random) -> str:
    return f"{rng.choice(USERNAME_ADJECTIVES)}{rng.choice(USERNAME_NOUNS)}{rng.randint(1, 99)}"


def validate_age(age: Any) -> int:
    try:
        value = int(age)
    except (TypeError, ValueError):
        raise ValidationError("Please enter a valid age", reason="invalid_age")
    if isinstance(age, float) and age != value:
        raise ValidationError("Please enter a valid age", reason="invalid_age")
    if value < MIN_AGE:
        raise ValidationError(f"You must be at least {MIN_AGE} years old", reason="too_young")
    if value > MAX_AGE:
        raise ValidationError(f"Orbit is for ages {MIN_AGE}-{MAX_AGE}", reason="too_old")
    return value


def validate_interests(interests: Any) -> list[str]:
    if interests is not None and not isinstance(interests, (list, tuple)):
        raise ValidationError("interests must be an array", reason="invalid_interests")
    tags = normalize_tags(interests)
    if not tags:
        raise ValidationError("Pick at least one interest", reason="empty_interests")
    if len(tags) > MAX_INTERESTS:
        raise ValidationError(f"Pick up to {MAX_INTERESTS} interests", reason="too_many_interests")
    unknown = [t for t in tags if t not in INTEREST_CATALOG]
    if unknown:
        raise ValidationError(f"Unknown interests: {', '.join(unknown)}", reason="unknown_interest")
    return tags


def validate_quiz_answers(answers: Any) -> list[int]:
    if not isinstance(answers, (list, tuple)) or len(answers) != QUIZ_LENGTH:
        raise ValidationError(f"quiz_answers must contain {QUIZ_LENGTH} answers", reason="invalid_quiz")
    out: list[int] = []
    for value in answers:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < QUIZ_OPTION_COUNT:
            raise ValidationError(
                f"Each quiz answer must be an option index 0-{QUIZ_OPTION_COUNT - 1}",
                reason="invalid_quiz_answer",
            )
        out.append(value)
    return out


def validate_username(username: Any) -> str | None:
    if username is None:
        return None
    value = str(username).strip()
    if not value:
        return None
    if len(value) > 64:
        raise ValidationError("username must be 64 characters or fewer", reason="invalid_username")
    return value


class OnboardingService:
    def __init__(self, profiles: ProfileStore, placement: RoomPlacementEngine, rng: random.Random | None = None) -> None:
        self.profiles = profiles
        self.placement = placement
        self.rng = rng or random.Random()

    def complete(
        self,
        user_id: str,
        age: Any,
        interests: Any,
        quiz_answers: Any,
        username: Any = None,
    ) -> dict[str, Any]:
        valid_age = validate_age(age)
        tags = validate_interests(interests)
        answers = validate_quiz_answers(quiz_answers)
        name = validate_username(username) or generate_username(self.rng)

        profile = self.profiles.get(user_id)
        if profile:
            if self.placement.rooms.get_room_for_user(user_id):
                raise ConflictError("Onboarding already completed", reason="already_onboarded")
            # an earlier attempt stored the profile but failed before placement
            logger.warning("[ONBOARDING] resuming placement user=%s", user_id)
            tags = list(profile.get("interests") or [])
            answers = list(profile.get("quiz_answers") or [])
        else:
            profile = self.profiles.create(user_id, name, valid_age, tags, answers)
            logger.info("[ONBOARDING] profile created user=%s interests=%s", user_id, tags)
        room_id = self.placement.place(user_id, tags, answers)
        return {"profile": profile, "room_id": room_id}
