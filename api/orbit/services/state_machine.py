PENDING = "pending"
ACCEPTED = "accepted"
REJECTED = "rejected"


def transition_status(current: str, action: str) -> str | None:
    """Next status of a connection request, or None if ``action`` is not allowed."""
    if action == "accept":
        if current == PENDING:
            return ACCEPTED
        return None

    if action == "reject":
        if current == PENDING:
            return REJECTED
        return None

    return None
