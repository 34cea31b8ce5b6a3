from datetime import datetime
from typing import Any
from pydantic import BaseModel, Field


class OnboardingRequest(BaseModel):
    age: Any
    interests: list[str] = Field(default_factory=list)
    quiz_answers: list[Any] = Field(default_factory=list)
    username: str | None = None


class PublicProfile(BaseModel):
    id: str
    username: str | None = None
    age: int | None = None
    interests: list[str] = Field(default_factory=list)


class OnboardingResponse(BaseModel):
    profile: PublicProfile
    room_id: str


class FeedItem(BaseModel):
    profile: PublicProfile
    match_score: int
    insight: str
    requested: bool


class CompatibilityResponse(BaseModel):
    user_id: str
    match_score: int
    insight: str


class SendRequestPayload(BaseModel):
    to_user: str


class ConnectionRequestOut(BaseModel):
    id: str
    from_user: str
    to_user: str
    status: str
    created_at: datetime | None = None
    auto_accepted: bool = False


class InboundRequest(BaseModel):
    id: str
    from_user: str
    status: str
    created_at: datetime | None = None
    sender: PublicProfile


class ConnectionOut(BaseModel):
    id: str
    other_user: str
    other_profile: PublicProfile | None = None
    created_at: datetime | None = None


class MessagePayload(BaseModel):
    body: str = ""


class MessageOut(BaseModel):
    id: str
    sender_id: str
    body: str
    created_at: datetime | None = None


class RoomSummary(BaseModel):
    id: str
    name: str
    tags: list[str] = Field(default_factory=list)
    capacity: int
    member_count: int


class RoomMember(BaseModel):
    user_id: str
    username: str | None = None
    interests: list[str] = Field(default_factory=list)
    joined_at: datetime | None = None


class RoomDetail(RoomSummary):
    members: list[RoomMember] = Field(default_factory=list)
