from __future__ import annotations

from ggprov_core.devices.chain import DeviceStep
from ggprov_core.devices.request import AssociationRequest
from ggprov_core.devices.types import DeviceItem
from ggprov_core.errors import PartialDeviceFailure
from ggprov_core.greengrass.interfaces import IotClient


class GetThingHandler(DeviceStep):
    """Resolve the IoT thing behind each device.

    The first pass only records things that already exist. The second pass
    runs after provisioning and fails devices whose thing is still missing.
    """

    def __init__(self, iot: IotClient, *, require_existing: bool = False) -> None:
        self._iot = iot
        self._require_existing = require_existing
        self.name = "get-thing-2" if require_existing else "get-thing-1"

    def handle_device(self, request: AssociationRequest, device: DeviceItem) -> None:
        thing = self._iot.describe_thing(device.thing_name)
        if thing is not None:
            request.things[device.thing_name] = thing
            return
        request.things.pop(device.thing_name, None)
        if self._require_existing:
            raise PartialDeviceFailure(
                device.thing_name,
                f"Thing {device.thing_name} does not exist",
            )
