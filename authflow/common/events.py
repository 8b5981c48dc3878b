"""In-process event envelope carried through state machine dispatch.

An event on its own is just an enum member; the envelope adds a unique id,
a timestamp and free-form headers (the payment id travels as a header).
"""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class EventMessage(BaseModel):
    """Canonical shape of one event sent to a state machine."""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    event: Any
    occurred_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    headers: dict[str, Any] = Field(default_factory=dict)

    def header(self, name: str, default: Any = None) -> Any:
        return self.headers.get(name, default)
