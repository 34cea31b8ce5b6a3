import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

from sqlalchemy import JSON, DateTime, bindparam, text
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError

from .config import ROOM_CAPACITY
from .errors import ConflictError, StoreUnavailable

logger = logging.getLogger(__name__)

_TS = DateTime(timezone=True)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def pair_key(user_a: str, user_b: str) -> str:
    low, high = sorted((str(user_a), str(user_b)))
    return f"{low}:{high}"


class _SqlStore:
    area = "store"

    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Any]:
        try:
            with self._session_factory() as db:
                yield db
        except (OperationalError, InterfaceError) as exc:
            logger.warning("[%s] store unavailable: %s", self.area.upper(), exc)
            raise StoreUnavailable(f"{self.area} store unavailable") from exc


class ProfileStore(_SqlStore):
    area = "profiles"

    _SELECT = """
        SELECT id, username, age, interests, quiz_answers, created_at
        FROM profile
    """

    def _select(self, where: str):
        return text(self._SELECT + where).columns(interests=JSON, quiz_answers=JSON, created_at=_TS)

    def get(self, user_id: str) -> dict[str, Any] | None:
        with self._session() as db:
            row = db.execute(self._select("WHERE id = :id"), {"id": user_id}).mappings().first()
        return dict(row) if row else None

    def get_many(self, user_ids: list[str]) -> dict[str, dict[str, Any]]:
        if not user_ids:
            return {}
        stmt = (
            text(self._SELECT + "WHERE id IN :ids")
            .bindparams(bindparam("ids", expanding=True))
            .columns(interests=JSON, quiz_answers=JSON, created_at=_TS)
        )
        with self._session() as db:
            rows = db.execute(stmt, {"ids": list(set(user_ids))}).mappings().all()
        return {str(r["id"]): dict(r) for r in rows}

    def list_others(self, user_id: str, limit: int = 20) -> list[dict[str, Any]]:
        with self._session() as db:
            rows = db.execute(
                self._select("WHERE id <> :id ORDER BY created_at DESC LIMIT :limit"),
                {"id": user_id, "limit": limit},
            ).mappings().all()
        return [dict(r) for r in rows]

    def create(self, user_id: str, username: str, age: int, interests: list[str], quiz_answers: list[int]) -> dict[str, Any]:
        stmt = text(
            """
            INSERT INTO profile (id, username, age, interests, quiz_answers, created_at)
            VALUES (:id, :username, :age, :interests, :quiz_answers, :created_at)
            """
        ).bindparams(
            bindparam("interests", type_=JSON),
            bindparam("quiz_answers", type_=JSON),
            bindparam("created_at", type_=_TS),
        )
        try:
            with self._session() as db:
                db.execute(
                    stmt,
                    {
                        "id": user_id,
                        "username": username,
                        "age": age,
                        "interests": interests,
                        "quiz_answers": quiz_answers,
                        "created_at": _now_utc(),
                    },
                )
                db.commit()
        except IntegrityError as exc:
            raise ConflictError("Profile already exists", reason="profile_exists") from exc
        return self.get(user_id) or {}


class ConnectionStore(_SqlStore):
    area = "connections"

    _COLUMNS = "id, from_user, to_user, status, created_at, updated_at"

    def _select(self, sql: str):
        return text(sql).columns(created_at=_TS, updated_at=_TS)

    def get(self, request_id: str) -> dict[str, Any] | None:
        with self._session() as db:
            row = db.execute(
                self._select(f"SELECT {self._COLUMNS} FROM connection_request WHERE id = :id"),
                {"id": request_id},
            ).mappings().first()
        return dict(row) if row else None

    def _pending_from(self, db, from_user: str, to_user: str) -> dict[str, Any] | None:
        row = db.execute(
            self._select(
                f"""
                SELECT {self._COLUMNS}
                FROM connection_request
                WHERE from_user = :from_user AND to_user = :to_user AND status = 'pending'
                ORDER BY created_at DESC
                LIMIT 1
                """
            ),
            {"from_user": from_user, "to_user": to_user},
        ).mappings().first()
        return dict(row) if row else None

    def _active_for_pair(self, db, key: str) -> dict[str, Any] | None:
        row = db.execute(
            self._select(
                f"""
                SELECT {self._COLUMNS}
                FROM connection_request
                WHERE pair_key = :pair_key AND status IN ('pending', 'accepted')
                LIMIT 1
                """
            ),
            {"pair_key": key},
        ).mappings().first()
        return dict(row) if row else None

    def _set_status(self, db, request_id: str, status: str) -> bool:
        stmt = text(
            """
            UPDATE connection_request
            SET status = :status, updated_at = :updated_at
            WHERE id = :id AND status = 'pending'
            """
        ).bindparams(bindparam("updated_at", type_=_TS))
        result = db.execute(stmt, {"id": request_id, "status": status, "updated_at": _now_utc()})
        return result.rowcount == 1

    def create_or_accept_mutual(self, from_user: str, to_user: str) -> tuple[dict[str, Any], bool]:
        """Insert a pending request, or accept the pending one already sent the other way.

        Returns ``(row, auto_accepted)``. Raises ConflictError when the pair
        already has an active request in the same direction or an accepted
        connection.
        """
        key = pair_key(from_user, to_user)
        try:
            with self._session() as db:
                inbound = self._pending_from(db, to_user, from_user)
                if inbound and self._set_status(db, str(inbound["id"]), "accepted"):
                    db.commit()
                    return self.get(str(inbound["id"])) or {}, True

                existing = self._active_for_pair(db, key)
                if existing:
                    raise ConflictError(
                        "A connection request between these users is already active",
                        reason=f"already_{existing['status']}",
                    )

                request_id = str(uuid.uuid4())
                db.execute(
                    text(
                        """
                        INSERT INTO connection_request (id, from_user, to_user, pair_key, status, created_at)
                        VALUES (:id, :from_user, :to_user, :pair_key, 'pending', :created_at)
                        """
                    ).bindparams(bindparam("created_at", type_=_TS)),
                    {
                        "id": request_id,
                        "from_user": from_user,
                        "to_user": to_user,
                        "pair_key": key,
                        "created_at": _now_utc(),
                    },
                )
                db.commit()
        except IntegrityError as exc:
            # a concurrent send for the same pair won the unique active-pair index
            accepted = self._accept_inbound(to_user, from_user)
            if accepted:
                return accepted, True
            raise ConflictError("A connection request between these users is already active", reason="already_pending") from exc
        return self.get(request_id) or {}, False

    def _accept_inbound(self, from_user: str, to_user: str) -> dict[str, Any] | None:
        with self._session() as db:
            inbound = self._pending_from(db, from_user, to_user)
            if not inbound or not self._set_status(db, str(inbound["id"]), "accepted"):
                db.rollback()
                return None
            db.commit()
        return self.get(str(inbound["id"]))

    def resolve(self, request_id: str, status: str) -> dict[str, Any] | None:
        """Move a pending request to ``status``; None if it was no longer pending."""
        with self._session() as db:
            changed = self._set_status(db, request_id, status)
            db.commit()
        if not changed:
            return None
        return self.get(request_id)

    def list_inbound(self, user_id: str) -> list[dict[str, Any]]:
        with self._session() as db:
            rows = db.execute(
                text(
                    """
                    SELECT
                      cr.id, cr.from_user, cr.to_user, cr.status, cr.created_at,
                      p.username AS sender_username,
                      p.age AS sender_age,
                      p.interests AS sender_interests
                    FROM connection_request cr
                    LEFT JOIN profile p ON p.id = cr.from_user
                    WHERE cr.to_user = :user_id AND cr.status = 'pending'
                    ORDER BY cr.created_at DESC
                    """
                ).columns(created_at=_TS, sender_interests=JSON),
                {"user_id": user_id},
            ).mappings().all()
        return [dict(r) for r in rows]

    def list_accepted(self, user_id: str) -> list[dict[str, Any]]:
        with self._session() as db:
            rows = db.execute(
                self._select(
                    f"""
                    SELECT {self._COLUMNS}
                    FROM connection_request
                    WHERE status = 'accepted' AND (from_user = :user_id OR to_user = :user_id)
                    ORDER BY created_at DESC
                    """
                ),
                {"user_id": user_id},
            ).mappings().all()
        return [dict(r) for r in rows]

    def list_active_targets(self, user_id: str) -> set[str]:
        with self._session() as db:
            rows = db.execute(
                text(
                    """
                    SELECT to_user
                    FROM connection_request
                    WHERE from_user = :user_id AND status IN ('pending', 'accepted')
                    """
                ),
                {"user_id": user_id},
            ).mappings().all()
        return {str(r["to_user"]) for r in rows}


class RoomStore(_SqlStore):
    area = "rooms"

    def list_open_rooms(self) -> list[dict[str, Any]]:
        """Rooms with a free seat and their live member counts, in one query."""
        with self._session() as db:
            rows = db.execute(
                text(
                    """
                    SELECT r.id, r.name, r.tags, r.capacity, COUNT(rm.user_id) AS member_count
                    FROM room r
                    LEFT JOIN room_membership rm ON rm.room_id = r.id
                    GROUP BY r.id
                    HAVING COUNT(rm.user_id) < r.capacity
                    ORDER BY r.created_at
                    """
                ).columns(tags=JSON),
                {},
            ).mappings().all()
        return [dict(r) for r in rows]

    def get_room(self, room_id: str) -> dict[str, Any] | None:
        with self._session() as db:
            row = db.execute(
                text(
                    "SELECT id, name, tags, capacity, member_count, created_at FROM room WHERE id = :id"
                ).columns(tags=JSON, created_at=_TS),
                {"id": room_id},
            ).mappings().first()
        return dict(row) if row else None

    def _claim(self, db, room_id: str, user_id: str) -> bool:
        result = db.execute(
            text(
                """
                UPDATE room
                SET member_count = member_count + 1
                WHERE id = :room_id AND member_count < capacity
                """
            ),
            {"room_id": room_id},
        )
        if result.rowcount != 1:
            return False
        db.execute(
            text(
                """
                INSERT INTO room_membership (room_id, user_id, joined_at)
                VALUES (:room_id, :user_id, :joined_at)
                """
            ).bindparams(bindparam("joined_at", type_=_TS)),
            {"room_id": room_id, "user_id": user_id, "joined_at": _now_utc()},
        )
        return True

    def claim_seat(self, room_id: str, user_id: str) -> bool:
        """Atomically take one seat in ``room_id`` for ``user_id``.

        The counter update only matches while ``member_count < capacity``, so
        concurrent claims on the last seat serialize on the row and exactly
        one of them wins.
        """
        try:
            with self._session() as db:
                claimed = self._claim(db, room_id, user_id)
                if not claimed:
                    db.rollback()
                    return False
                db.commit()
        except IntegrityError as exc:
            raise ConflictError("User is already a member of this room", reason="already_member") from exc
        return True

    def create_room_with_member(self, name: str, tags: list[str], user_id: str, capacity: int = ROOM_CAPACITY) -> dict[str, Any]:
        room_id = str(uuid.uuid4())
        with self._session() as db:
            db.execute(
                text(
                    """
                    INSERT INTO room (id, name, tags, capacity, member_count, created_at)
                    VALUES (:id, :name, :tags, :capacity, 0, :created_at)
                    """
                ).bindparams(bindparam("tags", type_=JSON), bindparam("created_at", type_=_TS)),
                {"id": room_id, "name": name, "tags": tags, "capacity": capacity, "created_at": _now_utc()},
            )
            if not self._claim(db, room_id, user_id):
                db.rollback()
                raise ConflictError("New room has no free seat", reason="room_full")
            db.commit()
        return self.get_room(room_id) or {}

    def get_room_for_user(self, user_id: str) -> str | None:
        with self._session() as db:
            row = db.execute(
                text(
                    """
                    SELECT room_id
                    FROM room_membership
                    WHERE user_id = :user_id
                    ORDER BY joined_at
                    LIMIT 1
                    """
                ),
                {"user_id": user_id},
            ).mappings().first()
        return str(row["room_id"]) if row else None

    def list_rooms_for_user(self, user_id: str) -> list[dict[str, Any]]:
        with self._session() as db:
            rows = db.execute(
                text(
                    """
                    SELECT r.id, r.name, r.tags, r.capacity, r.member_count, rm.joined_at
                    FROM room_membership rm
                    JOIN room r ON r.id = rm.room_id
                    WHERE rm.user_id = :user_id
                    ORDER BY rm.joined_at DESC
                    """
                ).columns(tags=JSON, joined_at=_TS),
                {"user_id": user_id},
            ).mappings().all()
        return [dict(r) for r in rows]

    def is_member(self, room_id: str, user_id: str) -> bool:
        with self._session() as db:
            row = db.execute(
                text("SELECT 1 AS present FROM room_membership WHERE room_id = :room_id AND user_id = :user_id"),
                {"room_id": room_id, "user_id": user_id},
            ).first()
        return row is not None

    def list_members(self, room_id: str) -> list[dict[str, Any]]:
        with self._session() as db:
            rows = db.execute(
                text(
                    """
                    SELECT rm.user_id, rm.joined_at, p.username, p.age, p.interests
                    FROM room_membership rm
                    LEFT JOIN profile p ON p.id = rm.user_id
                    WHERE rm.room_id = :room_id
                    ORDER BY rm.joined_at
                    """
                ).columns(joined_at=_TS, interests=JSON),
                {"room_id": room_id},
            ).mappings().all()
        return [dict(r) for r in rows]


class MessageStore(_SqlStore):
    area = "messages"

    def create(self, context_type: str, context_id: str, sender_id: str, body: str) -> dict[str, Any]:
        message = {
            "id": str(uuid.uuid4()),
            "context_type": context_type,
            "context_id": context_id,
            "sender_id": sender_id,
            "body": body,
            "created_at": _now_utc(),
        }
        with self._session() as db:
            db.execute(
                text(
                    """
                    INSERT INTO message (id, context_type, context_id, sender_id, body, created_at)
                    VALUES (:id, :context_type, :context_id, :sender_id, :body, :created_at)
                    """
                ).bindparams(bindparam("created_at", type_=_TS)),
                message,
            )
            db.commit()
        return message

    def list_for_context(self, context_type: str, context_id: str, limit: int = 200) -> list[dict[str, Any]]:
        with self._session() as db:
            rows = db.execute(
                text(
                    """
                    SELECT id, context_type, context_id, sender_id, body, created_at
                    FROM message
                    WHERE context_type = :context_type AND context_id = :context_id
                    ORDER BY created_at ASC
                    LIMIT :limit
                    """
                ).columns(created_at=_TS),
                {"context_type": context_type, "context_id": context_id, "limit": limit},
            ).mappings().all()
        return [dict(r) for r in rows]
