from typing import Any

from fastapi import APIRouter, Depends

from ..auth.deps import require_user_id
from ..deps import Services, get_services
from ..errors import NotFoundError
from ..schemas import OnboardingRequest, OnboardingResponse, PublicProfile
from ..services.connections import public_profile

router = APIRouter()


@router.post("/onboarding/complete", response_model=OnboardingResponse)
def complete_onboarding(
    payload: OnboardingRequest,
    user_id: str = Depends(require_user_id),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    result = services.onboarding.complete(
        user_id=user_id,
        age=payload.age,
        interests=payload.interests,
        quiz_answers=payload.quiz_answers,
        username=payload.username,
    )
    return {"profile": public_profile(result["profile"]), "room_id": result["room_id"]}


@router.get("/users/me")
def get_me(user_id: str = Depends(require_user_id), services: Services = Depends(get_services)) -> dict[str, Any]:
    row = services.profiles.get(user_id)
    if not row:
        return {"id": user_id, "onboarded": False, "profile": None, "room_id": None}
    return {
        "id": user_id,
        "onboarded": True,
        "profile": {**public_profile(row), "quiz_answers": list(row.get("quiz_answers") or [])},
        "room_id": services.room_store.get_room_for_user(user_id),
    }


@router.get("/users/{target_id}", response_model=PublicProfile)
def get_user(
    target_id: str,
    user_id: str = Depends(require_user_id),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    row = services.profiles.get(target_id)
    if not row:
        raise NotFoundError("User not found", reason="user_not_found")
    return public_profile(row)
