from __future__ import annotations

from ggprov_core.devices.chain import DeviceStep
from ggprov_core.devices.request import AssociationRequest
from ggprov_core.devices.types import STATUS_SUCCESS, DeviceItem
from ggprov_core.errors import PartialDeviceFailure
from ggprov_core.stores.interfaces import DeviceTaskStore


class ExistingAssociationHandler(DeviceStep):
    name = "existing-association"

    def __init__(self, tasks: DeviceTaskStore) -> None:
        self._tasks = tasks

    def handle(self, request: AssociationRequest) -> None:
        seen: set[str] = set()
        for device in request.active_devices():
            if device.thing_name in seen:
                request.fail_device(
                    device,
                    f"Thing {device.thing_name} is listed more than once in the task",
                )
                continue
            seen.add(device.thing_name)
        super().handle(request)

    def handle_device(self, request: AssociationRequest, device: DeviceItem) -> None:
        existing = self._tasks.get_device(device.thing_name)
        if existing is None or existing.status != STATUS_SUCCESS:
            return
        if existing.group_name and existing.group_name != request.group.name:
            raise PartialDeviceFailure(
                device.thing_name,
                f"Device {device.thing_name} is already associated with group "
                f"{existing.group_name}",
            )
