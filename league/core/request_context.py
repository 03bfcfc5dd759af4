"""Request-scoped context shared by every log line.

Two values travel with a request through the async call chain: the
``request_id`` minted (or accepted) by the middleware, and the ``athlete_id``
once a sync has resolved whose account it is working on. The logging
patcher copies both into each loguru record.
"""

import uuid
from contextvars import ContextVar
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
athlete_id_var: ContextVar[Optional[int]] = ContextVar("athlete_id", default=None)


def get_request_id() -> Optional[str]:
    """Get the current request ID from context.

    Returns
    -------
    Optional[str]
        The current request ID, or None outside a request
    """
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def generate_request_id() -> str:
    """Generate a new unique request ID (UUID v4)."""
    return str(uuid.uuid4())


def bind_athlete(athlete_id: int) -> None:
    """Attach the athlete being synced to the rest of this request's logs."""
    athlete_id_var.set(athlete_id)


def context_fields() -> dict[str, object]:
    """Return the non-empty context values as log extras."""
    fields: dict[str, object] = {}
    request_id = request_id_var.get()
    if request_id is not None:
        fields["request_id"] = request_id
    athlete_id = athlete_id_var.get()
    if athlete_id is not None:
        fields["athlete_id"] = athlete_id
    return fields
