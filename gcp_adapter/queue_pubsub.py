from __future__ import annotations

import base64
import binascii
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, Mapping

try:
    from google.api_core.exceptions import GoogleAPICallError
    from google.cloud import pubsub_v1
except ImportError:  # pragma: no cover - optional dependency
    GoogleAPICallError = None
    pubsub_v1 = None

from ggprov_core.config import Config
from ggprov_core.errors import UpstreamError
from ggprov_core.logging import get_logger
from ggprov_core.queue import QueueMessage, QueuePublisher

logger = get_logger(__name__)


@dataclass(frozen=True)
class PubSubPushEnvelope:
    message: QueueMessage
    subscription: str | None
    delivery_attempt: int | None = None


class PubSubPublisher(QueuePublisher):
    """Publish association tasks to a Pub/Sub topic.

    Topics may be given as a full `projects/<project>/topics/<name>` path or,
    when a project is configured, as a bare topic name.
    """

    def __init__(
        self,
        *,
        project_id: str | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        if pubsub_v1 is None:
            raise RuntimeError("google-cloud-pubsub is required for Pub/Sub publishing")
        self.client = pubsub_v1.PublisherClient()
        self.project_id = project_id
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_config(cls, config: Config) -> "PubSubPublisher":
        return cls(
            project_id=config.gcp_project,
            timeout_seconds=config.pubsub_publish_timeout_seconds,
        )

    def topic_path(self, topic: str) -> str:
        if topic.startswith("projects/"):
            return topic
        if not self.project_id:
            raise ValueError(
                f"Topic {topic} needs GOOGLE_CLOUD_PROJECT or a full topic path"
            )
        return self.client.topic_path(self.project_id, topic)

    def publish(
        self,
        *,
        topic: str,
        data: bytes,
        attributes: Mapping[str, str] | None = None,
    ) -> str:
        path = self.topic_path(topic)
        attrs = dict(attributes or {})
        future = self.client.publish(path, data, **attrs)
        try:
            message_id = future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError as exc:
            raise UpstreamError(
                f"Publishing to {path} timed out after {self.timeout_seconds}s"
            ) from exc
        except GoogleAPICallError as exc:
            raise UpstreamError(f"Publishing to {path} failed: {exc}") from exc
        logger.info(
            "Queue message published",
            extra={
                "topic": path,
                "message_id": message_id,
                "message_type": attrs.get("messageType"),
            },
        )
        return message_id


def parse_pubsub_push(body: Any) -> PubSubPushEnvelope:
    if not isinstance(body, dict):
        raise ValueError("Invalid Pub/Sub push payload: body must be object")
    message = body.get("message")
    if not isinstance(message, dict):
        raise ValueError("Invalid Pub/Sub push payload: missing message")

    raw_data = message.get("data", "")
    if not isinstance(raw_data, str):
        raise ValueError("Invalid Pub/Sub push payload: data must be base64 string")
    try:
        decoded = base64.b64decode(raw_data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Invalid Pub/Sub push payload: data not base64") from exc

    attributes = message.get("attributes") or {}
    if not isinstance(attributes, dict):
        raise ValueError("Invalid Pub/Sub push payload: attributes must be object")

    # deliveryAttempt is only present on subscriptions with a dead-letter topic.
    attempt = body.get("deliveryAttempt")
    return PubSubPushEnvelope(
        message=QueueMessage(
            data=decoded,
            attributes={str(k): str(v) for k, v in attributes.items()},
            message_id=message.get("messageId") or message.get("message_id"),
        ),
        subscription=body.get("subscription"),
        delivery_attempt=attempt if isinstance(attempt, int) else None,
    )
