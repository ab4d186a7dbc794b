from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol


@dataclass(frozen=True)
class QueueMessage:
    data: bytes
    attributes: dict[str, str] = field(default_factory=dict)
    message_id: str | None = None


class QueuePublisher(Protocol):
    def publish(
        self,
        *,
        topic: str,
        data: bytes,
        attributes: Mapping[str, str] | None = None,
    ) -> str: ...
