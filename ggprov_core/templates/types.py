from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TemplateItem:
    name: str
    version_no: int
    group_id: str | None = None
    group_version_id: str | None = None
    enabled: bool = True
    core_config: dict[str, object] | None = None
    created_at: str | None = None
    updated_at: str | None = None
