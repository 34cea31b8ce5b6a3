from typing import Any

from fastapi import APIRouter, Depends

from ..auth.deps import require_user_id
from ..config import RL_MESSAGE_SEND_LIMIT, RL_WINDOW_SECONDS
from ..deps import Services, get_services
from ..schemas import ConnectionOut, MessageOut, MessagePayload
from ..services.rate_limit import rate_limit_dependency

router = APIRouter()

RL_MESSAGE_SEND = rate_limit_dependency("message_send", RL_MESSAGE_SEND_LIMIT, RL_WINDOW_SECONDS)


@router.get("/connections", response_model=list[ConnectionOut])
def list_connections(user_id: str = Depends(require_user_id), services: Services = Depends(get_services)) -> list[dict[str, Any]]:
    return services.connections.list_accepted(user_id)


@router.get("/connections/{connection_id}/messages", response_model=list[MessageOut])
def list_pair_messages(
    connection_id: str,
    user_id: str = Depends(require_user_id),
    services: Services = Depends(get_services),
) -> list[dict[str, Any]]:
    return services.messaging.list_pair_messages(connection_id, user_id)


@router.post("/connections/{connection_id}/messages", response_model=MessageOut, dependencies=[RL_MESSAGE_SEND])
def send_pair_message(
    connection_id: str,
    payload: MessagePayload,
    user_id: str = Depends(require_user_id),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    return services.messaging.post_pair_message(connection_id, user_id, payload.body)
