from fastapi import FastAPI

from .chat import router as chat_router
from .discovery import router as discovery_router
from .profile import router as profile_router
from .requests import router as requests_router
from .rooms import router as rooms_router


def include_modular_routers(app: FastAPI) -> None:
    app.include_router(profile_router, tags=["users"])
    app.include_router(discovery_router, tags=["discovery"])
    app.include_router(requests_router, tags=["requests"])
    app.include_router(chat_router, tags=["chat"])
    app.include_router(rooms_router, tags=["rooms"])


__all__ = ["include_modular_routers"]
