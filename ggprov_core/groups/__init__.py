from ggprov_core.groups.store import (
    get_group,
    group_registry_uri,
    load_groups,
    save_group,
    save_groups,
)
from ggprov_core.groups.types import GroupItem

__all__ = [
    "GroupItem",
    "get_group",
    "group_registry_uri",
    "load_groups",
    "save_group",
    "save_groups",
]
