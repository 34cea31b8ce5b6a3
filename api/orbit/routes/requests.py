from typing import Any

from fastapi import APIRouter, Depends

from ..auth.deps import require_user_id
from ..config import RL_REQUEST_RESOLVE_LIMIT, RL_REQUEST_SEND_LIMIT, RL_WINDOW_SECONDS
from ..deps import Services, get_services
from ..schemas import ConnectionRequestOut, InboundRequest, SendRequestPayload
from ..services.rate_limit import rate_limit_dependency

router = APIRouter()

RL_REQUEST_SEND = rate_limit_dependency("request_send", RL_REQUEST_SEND_LIMIT, RL_WINDOW_SECONDS)
RL_REQUEST_RESOLVE = rate_limit_dependency("request_resolve", RL_REQUEST_RESOLVE_LIMIT, RL_WINDOW_SECONDS)


@router.post("/requests", response_model=ConnectionRequestOut, dependencies=[RL_REQUEST_SEND])
def send_request(
    payload: SendRequestPayload,
    user_id: str = Depends(require_user_id),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    return services.connections.send_request(user_id, payload.to_user)


@router.get("/requests/inbound", response_model=list[InboundRequest])
def list_inbound(user_id: str = Depends(require_user_id), services: Services = Depends(get_services)) -> list[dict[str, Any]]:
    return services.connections.list_inbound(user_id)


@router.post("/requests/{request_id}/accept", response_model=ConnectionRequestOut, dependencies=[RL_REQUEST_RESOLVE])
def accept_request(
    request_id: str,
    user_id: str = Depends(require_user_id),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    return services.connections.accept(request_id, user_id)


@router.post("/requests/{request_id}/reject", response_model=ConnectionRequestOut, dependencies=[RL_REQUEST_RESOLVE])
def reject_request(
    request_id: str,
    user_id: str = Depends(require_user_id),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    return services.connections.reject(request_id, user_id)
