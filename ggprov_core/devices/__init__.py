from ggprov_core.devices.store import (
    device_registry_uri,
    device_tasks_uri,
    get_device,
    get_device_association_task,
    load_device_tasks,
    load_devices,
    save_device_association_task,
    save_devices,
)
from ggprov_core.devices.types import (
    DEVICE_TYPE_CORE,
    DEVICE_TYPE_DEVICE,
    STATUS_FAILURE,
    STATUS_IN_PROGRESS,
    STATUS_SUCCESS,
    STATUS_WAITING,
    DeviceItem,
    DeviceTaskSummary,
)

__all__ = [
    "DEVICE_TYPE_CORE",
    "DEVICE_TYPE_DEVICE",
    "STATUS_FAILURE",
    "STATUS_IN_PROGRESS",
    "STATUS_SUCCESS",
    "STATUS_WAITING",
    "DeviceItem",
    "DeviceTaskSummary",
    "device_registry_uri",
    "device_tasks_uri",
    "get_device",
    "get_device_association_task",
    "load_device_tasks",
    "load_devices",
    "save_device_association_task",
    "save_devices",
]
