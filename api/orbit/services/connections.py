from __future__ import annotations

import logging
from typing import Any

from ..errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..repo import ConnectionStore, ProfileStore
from .state_machine import ACCEPTED, REJECTED, transition_status

logger = logging.getLogger(__name__)


def other_party(connection: dict[str, Any], user_id: str) -> str:
    from_user = str(connection["from_user"])
    to_user = str(connection["to_user"])
    return to_user if from_user == str(user_id) else from_user


def public_profile(row: dict[str, Any] | None) -> dict[str, Any] | None:
    if not row:
        return None
    return {
        "id": str(row["id"]),
        "username": row.get("username"),
        "age": row.get("age"),
        "interests": list(row.get("interests") or []),
    }


class ConnectionManager:
    """Lifecycle of pairwise connection requests.

    A request is created pending by its sender and resolved only by its
    receiver. An accepted request is the connection that unlocks the pair's
    private conversation.
    """

    def __init__(self, store: ConnectionStore, profiles: ProfileStore) -> None:
        self.store = store
        self.profiles = profiles

    def send_request(self, from_user: str, to_user: str) -> dict[str, Any]:
        from_user = str(from_user or "").strip()
        to_user = str(to_user or "").strip()
        if not from_user or not to_user:
            raise ValidationError("Both users are required", reason="missing_user")
        if from_user == to_user:
            raise ValidationError("You cannot send a request to yourself", reason="self_request")
        if not self.profiles.get(to_user):
            raise NotFoundError("User not found", reason="user_not_found")

        row, auto_accepted = self.store.create_or_accept_mutual(from_user, to_user)
        if auto_accepted:
            logger.info("[CONNECT] mutual request auto-accepted id=%s from=%s to=%s", row.get("id"), to_user, from_user)
        else:
            logger.info("[CONNECT] request sent id=%s from=%s to=%s", row.get("id"), from_user, to_user)
        return {**row, "auto_accepted": auto_accepted}

    def _resolve(self, request_id: str, acting_user: str, action: str) -> dict[str, Any]:
        row = self.store.get(request_id)
        if not row:
            raise NotFoundError("Request not found", reason="request_not_found")
        if str(row["to_user"]) != str(acting_user):
            logger.warning("[CONNECT] %s denied id=%s acting_user=%s", action, request_id, acting_user)
            raise AuthorizationError("Only the recipient can respond to this request", reason="not_recipient")

        next_status = transition_status(row["status"], action)
        if next_status is None:
            raise ConflictError(f"Request already {row['status']}", reason=f"already_{row['status']}")

        updated = self.store.resolve(request_id, next_status)
        if updated is None:
            # resolved by a concurrent call between the read and the write
            latest = self.store.get(request_id) or row
            raise ConflictError(f"Request already {latest['status']}", reason=f"already_{latest['status']}")
        logger.info("[CONNECT] request %s id=%s by=%s", next_status, request_id, acting_user)
        return updated

    def accept(self, request_id: str, acting_user: str) -> dict[str, Any]:
        return self._resolve(request_id, acting_user, "accept")

    def reject(self, request_id: str, acting_user: str) -> dict[str, Any]:
        return self._resolve(request_id, acting_user, "reject")

    def list_inbound(self, user_id: str) -> list[dict[str, Any]]:
        out = []
        for r in self.store.list_inbound(str(user_id)):
            out.append(
                {
                    "id": str(r["id"]),
                    "from_user": str(r["from_user"]),
                    "to_user": str(r["to_user"]),
                    "status": r["status"],
                    "created_at": r.get("created_at"),
                    "sender": {
                        "id": str(r["from_user"]),
                        "username": r.get("sender_username"),
                        "age": r.get("sender_age"),
                        "interests": list(r.get("sender_interests") or []),
                    },
                }
            )
        return out

    def list_accepted(self, user_id: str) -> list[dict[str, Any]]:
        rows = self.store.list_accepted(str(user_id))
        other_ids = [other_party(r, user_id) for r in rows]
        profiles = self.profiles.get_many(other_ids)
        out = []
        for r, other_id in zip(rows, other_ids):
            out.append(
                {
                    "id": str(r["id"]),
                    "other_user": other_id,
                    "other_profile": public_profile(profiles.get(other_id)),
                    "created_at": r.get("created_at"),
                }
            )
        return out

    def ensure_pair_access(self, connection_id: str, user_id: str) -> dict[str, Any]:
        """Return the connection if ``user_id`` may use its conversation."""
        row = self.store.get(connection_id)
        if not row:
            raise NotFoundError("Connection not found", reason="connection_not_found")
        if str(user_id) not in {str(row["from_user"]), str(row["to_user"])}:
            raise AuthorizationError("Not part of this connection", reason="not_participant")
        if row["status"] != ACCEPTED:
            reason = "connection_rejected" if row["status"] == REJECTED else "connection_pending"
            raise AuthorizationError("Connection has not been accepted", reason=reason)
        return row
