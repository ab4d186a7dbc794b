from __future__ import annotations

import os
from dataclasses import dataclass

from ggprov_core.stores.interfaces import DeviceTaskStore, GroupStore, TemplateStore
from ggprov_core.stores.json_store import (
    JsonDeviceTaskStore,
    JsonGroupStore,
    JsonTemplateStore,
)


@dataclass(frozen=True)
class StoreBundle:
    tasks: DeviceTaskStore
    groups: GroupStore
    templates: TemplateStore


def get_store_bundle(base_uri: str, backend: str | None = None) -> StoreBundle:
    resolved = (backend or os.getenv("CONTROL_PLANE_STORE", "json")).strip().lower()
    if resolved != "json":
        raise ValueError(f"Unsupported control-plane store backend: {resolved}")
    return StoreBundle(
        tasks=JsonDeviceTaskStore(base_uri),
        groups=JsonGroupStore(base_uri),
        templates=JsonTemplateStore(base_uri),
    )
