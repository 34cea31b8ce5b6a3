from sqlalchemy import JSON, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text, func, text

from .config import ROOM_CAPACITY
from .database import Base


class Profile(Base):
    __tablename__ = "profile"

    id = Column(String(36), primary_key=True)
    username = Column(String(64), nullable=False)
    age = Column(Integer, nullable=False)
    interests = Column(JSON, nullable=False, default=list)
    quiz_answers = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ConnectionRequest(Base):
    __tablename__ = "connection_request"

    id = Column(String(36), primary_key=True)
    from_user = Column(String(36), ForeignKey("profile.id", ondelete="CASCADE"), nullable=False)
    to_user = Column(String(36), ForeignKey("profile.id", ondelete="CASCADE"), nullable=False)
    # "{low_id}:{high_id}" so both directions of a pair share one key
    pair_key = Column(String(73), nullable=False)
    status = Column(String(16), nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("from_user <> to_user", name="ck_connection_request_not_self"),
        CheckConstraint("status IN ('pending', 'accepted', 'rejected')", name="ck_connection_request_status"),
        Index("idx_connection_request_to_status", "to_user", "status"),
        Index("idx_connection_request_from_status", "from_user", "status"),
        Index(
            "uq_connection_request_active_pair",
            "pair_key",
            unique=True,
            postgresql_where=text("status IN ('pending', 'accepted')"),
            sqlite_where=text("status IN ('pending', 'accepted')"),
        ),
    )


class Room(Base):
    __tablename__ = "room"

    id = Column(String(36), primary_key=True)
    name = Column(String(120), nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    capacity = Column(Integer, nullable=False, default=ROOM_CAPACITY)
    member_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("member_count >= 0 AND member_count <= capacity", name="ck_room_member_count"),
    )


class RoomMembership(Base):
    __tablename__ = "room_membership"

    room_id = Column(String(36), ForeignKey("room.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(36), ForeignKey("profile.id", ondelete="CASCADE"), primary_key=True)
    joined_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_room_membership_user_id", "user_id"),
    )


class Message(Base):
    __tablename__ = "message"

    id = Column(String(36), primary_key=True)
    context_type = Column(String(8), nullable=False)
    context_id = Column(String(36), nullable=False)
    sender_id = Column(String(36), ForeignKey("profile.id", ondelete="CASCADE"), nullable=False)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("context_type IN ('pair', 'room')", name="ck_message_context_type"),
        Index("idx_message_context", "context_type", "context_id", "created_at"),
    )
