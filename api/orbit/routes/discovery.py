from typing import Any

from fastapi import APIRouter, Depends

from ..auth.deps import require_user_id
from ..config import DISCOVERY_LIMIT
from ..deps import Services, get_services
from ..errors import NotFoundError, ValidationError
from ..schemas import CompatibilityResponse, FeedItem
from ..services.connections import public_profile
from ..services.scoring import build_feed, insight, score

router = APIRouter()


def _viewer(services: Services, user_id: str) -> dict[str, Any]:
    viewer = services.profiles.get(user_id)
    if not viewer:
        raise NotFoundError("Complete onboarding first", reason="profile_not_found")
    return viewer


@router.get("/discover", response_model=list[FeedItem])
def discover(user_id: str = Depends(require_user_id), services: Services = Depends(get_services)) -> list[dict[str, Any]]:
    viewer = _viewer(services, user_id)
    candidates = services.profiles.list_others(user_id, limit=DISCOVERY_LIMIT)
    requested = services.connection_store.list_active_targets(user_id)
    feed = build_feed(viewer, candidates, requested_ids=requested, rng=services.rng)
    return [
        {
            "profile": public_profile(entry.profile),
            "match_score": entry.match_score,
            "insight": entry.insight,
            "requested": entry.requested,
        }
        for entry in feed
    ]


@router.get("/compatibility/{target_id}", response_model=CompatibilityResponse)
def compatibility(
    target_id: str,
    user_id: str = Depends(require_user_id),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    if target_id == user_id:
        raise ValidationError("Pick someone other than yourself", reason="self_compatibility")
    viewer = _viewer(services, user_id)
    other = services.profiles.get(target_id)
    if not other:
        raise NotFoundError("User not found", reason="user_not_found")
    return {
        "user_id": target_id,
        "match_score": score(viewer.get("quiz_answers"), other.get("quiz_answers"), rng=services.rng),
        "insight": insight(viewer.get("interests"), other.get("interests"), rng=services.rng),
    }
