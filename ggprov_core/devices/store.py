from __future__ import annotations

from dataclasses import asdict, replace
from datetime import datetime, timezone
from typing import Iterable

from ggprov_core.devices.types import STATUS_WAITING, DeviceItem, DeviceTaskSummary
from ggprov_core.storage.documents import document_lock, read_items, write_items
from ggprov_core.storage.paths import control_uri


def device_tasks_uri(base_uri: str) -> str:
    return control_uri(base_uri, "device_tasks.json")


def device_registry_uri(base_uri: str) -> str:
    return control_uri(base_uri, "devices.json")


def load_device_tasks(base_uri: str) -> list[DeviceTaskSummary]:
    items = read_items(device_tasks_uri(base_uri), "tasks")
    return [task_from_dict(item) for item in items]


def save_device_tasks(base_uri: str, tasks: Iterable[DeviceTaskSummary]) -> str:
    return write_items(
        device_tasks_uri(base_uri),
        "tasks",
        [task_to_dict(task) for task in tasks],
    )


def save_device_association_task(
    base_uri: str,
    task: DeviceTaskSummary,
) -> DeviceTaskSummary:
    with document_lock():
        updated: list[DeviceTaskSummary] = []
        found = False
        for existing in load_device_tasks(base_uri):
            if (
                existing.task_id == task.task_id
                and existing.group_name == task.group_name
            ):
                updated.append(task)
                found = True
            else:
                updated.append(existing)
        if not found:
            updated.append(task)
        save_device_tasks(base_uri, updated)
    return task


def get_device_association_task(
    base_uri: str,
    group_name: str,
    task_id: str,
) -> DeviceTaskSummary | None:
    tasks = load_device_tasks(base_uri)
    return next(
        (
            task
            for task in tasks
            if task.task_id == task_id and task.group_name == group_name
        ),
        None,
    )


def load_devices(base_uri: str) -> list[DeviceItem]:
    items = read_items(device_registry_uri(base_uri), "devices")
    return [device_from_dict(item) for item in items]


def save_devices(base_uri: str, devices: Iterable[DeviceItem]) -> list[DeviceItem]:
    """Upsert devices into the registry, keyed by thing name."""
    incoming = list(devices)
    if not incoming:
        return []
    now = datetime.now(timezone.utc).isoformat()
    saved: list[DeviceItem] = []
    with document_lock():
        by_name = {device.thing_name: device for device in load_devices(base_uri)}
        for device in incoming:
            existing = by_name.get(device.thing_name)
            created_at = (existing.created_at if existing else None) or now
            record = replace(device, created_at=created_at, updated_at=now)
            by_name[device.thing_name] = record
            saved.append(record)
        write_items(
            device_registry_uri(base_uri),
            "devices",
            [device_to_dict(device) for device in by_name.values()],
        )
    return saved


def get_device(base_uri: str, thing_name: str) -> DeviceItem | None:
    devices = load_devices(base_uri)
    return next((device for device in devices if device.thing_name == thing_name), None)


def task_to_dict(task: DeviceTaskSummary) -> dict[str, object]:
    return asdict(task)


def device_to_dict(device: DeviceItem) -> dict[str, object]:
    return asdict(device)


def task_from_dict(payload: dict[str, object]) -> DeviceTaskSummary:
    devices = payload.get("devices")
    return DeviceTaskSummary(
        task_id=_coerce_optional_str(payload.get("task_id")) or "",
        group_name=_coerce_optional_str(payload.get("group_name")) or "",
        status=_coerce_optional_str(payload.get("status")) or STATUS_WAITING,
        created_at=str(payload.get("created_at", "")),
        updated_at=str(payload.get("updated_at", "")),
        devices=[
            device_from_dict(item)
            for item in devices
            if isinstance(item, dict)
        ]
        if isinstance(devices, list)
        else [],
        status_message=_coerce_optional_str(payload.get("status_message")),
    )


def device_from_dict(payload: dict[str, object]) -> DeviceItem:
    return DeviceItem(
        thing_name=_coerce_optional_str(payload.get("thing_name")) or "",
        type=_coerce_optional_str(payload.get("type")) or "",
        provisioning_template=(
            _coerce_optional_str(payload.get("provisioning_template")) or ""
        ),
        status=_coerce_optional_str(payload.get("status")) or STATUS_WAITING,
        status_message=_coerce_optional_str(payload.get("status_message")),
        provisioning_parameters=_coerce_str_mapping(
            payload.get("provisioning_parameters")
        ),
        sync_shadow=_coerce_bool(payload.get("sync_shadow"), True),
        artifacts=_coerce_str_mapping(payload.get("artifacts")),
        group_name=_coerce_optional_str(payload.get("group_name")),
        created_at=_coerce_optional_str(payload.get("created_at")),
        updated_at=_coerce_optional_str(payload.get("updated_at")),
    )


def _coerce_optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_str_mapping(value: object) -> dict[str, str] | None:
    if not isinstance(value, dict):
        return None
    return {str(key): str(item) for key, item in value.items()}


def _coerce_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "y"}:
            return True
        if lowered in {"0", "false", "no", "n"}:
            return False
    return default
