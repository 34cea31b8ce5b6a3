import random
from functools import lru_cache

from .database import SessionLocal
from .repo import ConnectionStore, MessageStore, ProfileStore, RoomStore
from .services.connections import ConnectionManager
from .services.messaging import MessageService
from .services.onboarding import OnboardingService
from .services.placement import RoomPlacementEngine


class Services:
    """Stores and services wired to one session factory."""

    def __init__(self, session_factory, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()
        self.profiles = ProfileStore(session_factory)
        self.connection_store = ConnectionStore(session_factory)
        self.room_store = RoomStore(session_factory)
        self.message_store = MessageStore(session_factory)
        self.connections = ConnectionManager(self.connection_store, self.profiles)
        self.placement = RoomPlacementEngine(self.room_store, rng=self.rng)
        self.onboarding = OnboardingService(self.profiles, self.placement, rng=self.rng)
        self.messaging = MessageService(self.message_store, self.connections, self.room_store)


@lru_cache(maxsize=1)
def get_services() -> Services:
    return Services(SessionLocal)
