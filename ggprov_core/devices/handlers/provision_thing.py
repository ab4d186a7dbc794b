from __future__ import annotations

from ggprov_core.devices.chain import DeviceStep
from ggprov_core.devices.request import AssociationRequest
from ggprov_core.devices.types import DeviceItem
from ggprov_core.errors import NotFoundError, PartialDeviceFailure, UpstreamError
from ggprov_core.greengrass.interfaces import IotClient
from ggprov_core.logging import get_logger

logger = get_logger(__name__)


class ProvisionThingHandler(DeviceStep):
    name = "provision-thing"

    def __init__(self, iot: IotClient) -> None:
        self._iot = iot

    def handle_device(self, request: AssociationRequest, device: DeviceItem) -> None:
        if device.thing_name in request.things:
            return
        parameters = dict(device.provisioning_parameters or {})
        parameters.setdefault("ThingName", device.thing_name)
        try:
            provisioned = self._iot.provision_thing(
                template_name=device.provisioning_template,
                parameters=parameters,
            )
        except (NotFoundError, UpstreamError) as exc:
            raise PartialDeviceFailure(
                device.thing_name,
                f"Failed provisioning thing {device.thing_name}: {exc}",
            ) from exc
        if provisioned.certificate_arn:
            request.certificate_arns[device.thing_name] = provisioned.certificate_arn
        logger.info(
            "Provisioned thing",
            extra={
                "task_id": request.task_info.task_id,
                "group_name": request.group.name,
                "thing_name": device.thing_name,
            },
        )
