from __future__ import annotations

import json

from ggprov_core.devices.store import task_from_dict, task_to_dict
from ggprov_core.devices.types import DeviceTaskSummary
from ggprov_core.errors import ValidationError
from ggprov_core.queue import QueueMessage

MESSAGE_TYPE_ATTRIBUTE = "messageType"
DEVICE_TASK_MESSAGE_TYPE = "DeviceTaskSummary"


def encode_task_message(
    task: DeviceTaskSummary,
    *,
    token: str | None = None,
) -> tuple[bytes, dict[str, str]]:
    data = json.dumps(task_to_dict(task), ensure_ascii=True).encode("utf-8")
    attributes = {MESSAGE_TYPE_ATTRIBUTE: DEVICE_TASK_MESSAGE_TYPE}
    if token:
        attributes["token"] = token
    return data, attributes


def is_task_message(message: QueueMessage) -> bool:
    return message.attributes.get(MESSAGE_TYPE_ATTRIBUTE) == DEVICE_TASK_MESSAGE_TYPE


def decode_task_message(message: QueueMessage) -> DeviceTaskSummary:
    try:
        payload = json.loads(message.data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError("Device task message is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise ValidationError("Device task message must be a JSON object")
    return task_from_dict(payload)
