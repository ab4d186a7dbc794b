from __future__ import annotations

from dataclasses import asdict, replace
from datetime import datetime, timezone
from typing import Iterable

from ggprov_core.groups.types import GroupItem
from ggprov_core.storage.documents import document_lock, read_items, write_items
from ggprov_core.storage.paths import control_uri


def group_registry_uri(base_uri: str) -> str:
    return control_uri(base_uri, "groups.json")


def load_groups(base_uri: str) -> list[GroupItem]:
    items = read_items(group_registry_uri(base_uri), "groups")
    return [_group_from_dict(item) for item in items]


def save_groups(base_uri: str, groups: Iterable[GroupItem]) -> str:
    return write_items(
        group_registry_uri(base_uri),
        "groups",
        [asdict(group) for group in groups],
    )


def get_group(base_uri: str, name: str) -> GroupItem | None:
    groups = load_groups(base_uri)
    return next((group for group in groups if group.name == name), None)


def save_group(base_uri: str, group: GroupItem) -> GroupItem:
    now = datetime.now(timezone.utc).isoformat()
    updated: list[GroupItem] = []
    saved: GroupItem | None = None
    with document_lock():
        for existing in load_groups(base_uri):
            if existing.name == group.name:
                saved = replace(
                    group,
                    created_at=existing.created_at or group.created_at or now,
                    updated_at=now,
                )
                updated.append(saved)
            else:
                updated.append(existing)
        if saved is None:
            saved = replace(group, created_at=group.created_at or now, updated_at=now)
            updated.append(saved)
        save_groups(base_uri, updated)
    return saved


def _group_from_dict(payload: dict[str, object]) -> GroupItem:
    return GroupItem(
        id=str(payload.get("id", "")),
        name=str(payload.get("name", "")),
        template_name=str(payload.get("template_name", "")),
        template_version_no=_coerce_int(payload.get("template_version_no")) or 0,
        arn=_coerce_optional_str(payload.get("arn")),
        version_id=_coerce_optional_str(payload.get("version_id")),
        version_no=_coerce_int(payload.get("version_no")),
        deployed=bool(payload.get("deployed", False)),
        task_status=_coerce_optional_str(payload.get("task_status")),
        status_message=_coerce_optional_str(payload.get("status_message")),
        created_at=_coerce_optional_str(payload.get("created_at")),
        updated_at=_coerce_optional_str(payload.get("updated_at")),
    )


def _coerce_optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_int(value: object) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None
