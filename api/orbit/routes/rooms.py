from typing import Any

from fastapi import APIRouter, Depends

from ..auth.deps import require_user_id
from ..config import RL_MESSAGE_SEND_LIMIT, RL_WINDOW_SECONDS
from ..deps import Services, get_services
from ..schemas import MessageOut, MessagePayload, RoomDetail, RoomSummary
from ..services.rate_limit import rate_limit_dependency

router = APIRouter()

RL_ROOM_MESSAGE_SEND = rate_limit_dependency("room_message_send", RL_MESSAGE_SEND_LIMIT, RL_WINDOW_SECONDS)


@router.get("/rooms/mine", response_model=list[RoomSummary])
def my_rooms(user_id: str = Depends(require_user_id), services: Services = Depends(get_services)) -> list[dict[str, Any]]:
    return services.room_store.list_rooms_for_user(user_id)


@router.get("/rooms/{room_id}", response_model=RoomDetail)
def get_room(room_id: str, user_id: str = Depends(require_user_id), services: Services = Depends(get_services)) -> dict[str, Any]:
    room = services.messaging.get_room_detail(room_id, user_id)
    room["members"] = [
        {
            "user_id": str(m["user_id"]),
            "username": m.get("username"),
            "interests": list(m.get("interests") or []),
            "joined_at": m.get("joined_at"),
        }
        for m in room["members"]
    ]
    return room


@router.get("/rooms/{room_id}/messages", response_model=list[MessageOut])
def list_room_messages(
    room_id: str,
    user_id: str = Depends(require_user_id),
    services: Services = Depends(get_services),
) -> list[dict[str, Any]]:
    return services.messaging.list_room_messages(room_id, user_id)


@router.post("/rooms/{room_id}/messages", response_model=MessageOut, dependencies=[RL_ROOM_MESSAGE_SEND])
def send_room_message(
    room_id: str,
    payload: MessagePayload,
    user_id: str = Depends(require_user_id),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    return services.messaging.post_room_message(room_id, user_id, payload.body)
