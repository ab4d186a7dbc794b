from __future__ import annotations

from dataclasses import asdict, replace
from datetime import datetime, timezone
from typing import Iterable

from ggprov_core.storage.documents import document_lock, read_items, write_items
from ggprov_core.storage.paths import control_uri
from ggprov_core.templates.types import TemplateItem


def template_registry_uri(base_uri: str) -> str:
    return control_uri(base_uri, "templates.json")


def load_templates(base_uri: str) -> list[TemplateItem]:
    items = read_items(template_registry_uri(base_uri), "templates")
    return [_template_from_dict(item) for item in items]


def save_templates(base_uri: str, templates: Iterable[TemplateItem]) -> str:
    return write_items(
        template_registry_uri(base_uri),
        "templates",
        [asdict(template) for template in templates],
    )


def get_template(
    base_uri: str,
    name: str,
    version_no: int | None = None,
) -> TemplateItem | None:
    """Return a template version, or the latest version when none is given."""
    candidates = [item for item in load_templates(base_uri) if item.name == name]
    if not candidates:
        return None
    if version_no is None:
        return max(candidates, key=lambda item: item.version_no)
    return next((item for item in candidates if item.version_no == version_no), None)


def save_template(base_uri: str, template: TemplateItem) -> TemplateItem:
    """Store a new version of a template.

    Versions are immutable: saving always appends `latest + 1`, keeping the
    original creation time and enabled flag of the template.
    """
    now = datetime.now(timezone.utc).isoformat()
    with document_lock():
        templates = load_templates(base_uri)
        latest = get_template(base_uri, template.name)
        if latest is None:
            saved = replace(template, version_no=1, created_at=now, updated_at=now)
        else:
            saved = replace(
                template,
                version_no=latest.version_no + 1,
                created_at=latest.created_at or now,
                updated_at=now,
                enabled=latest.enabled,
            )
        templates.append(saved)
        save_templates(base_uri, templates)
    return saved


def _template_from_dict(payload: dict[str, object]) -> TemplateItem:
    core_config = payload.get("core_config")
    return TemplateItem(
        name=str(payload.get("name", "")),
        version_no=_coerce_int(payload.get("version_no")) or 0,
        group_id=_coerce_optional_str(payload.get("group_id")),
        group_version_id=_coerce_optional_str(payload.get("group_version_id")),
        enabled=bool(payload.get("enabled", True)),
        core_config=core_config if isinstance(core_config, dict) else None,
        created_at=_coerce_optional_str(payload.get("created_at")),
        updated_at=_coerce_optional_str(payload.get("updated_at")),
    )


def _coerce_optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None
