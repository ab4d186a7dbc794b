from ggprov_core.stores.interfaces import DeviceTaskStore, GroupStore, TemplateStore
from ggprov_core.stores.registry import StoreBundle, get_store_bundle

__all__ = [
    "DeviceTaskStore",
    "GroupStore",
    "StoreBundle",
    "TemplateStore",
    "get_store_bundle",
]
