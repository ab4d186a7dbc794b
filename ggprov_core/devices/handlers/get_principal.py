from __future__ import annotations

from ggprov_core.devices.chain import DeviceStep
from ggprov_core.devices.request import AssociationRequest
from ggprov_core.devices.types import DeviceItem
from ggprov_core.errors import PartialDeviceFailure
from ggprov_core.greengrass.interfaces import IotClient


class GetPrincipalHandler(DeviceStep):
    name = "get-principal"

    def __init__(self, iot: IotClient) -> None:
        self._iot = iot

    def handle_device(self, request: AssociationRequest, device: DeviceItem) -> None:
        if device.thing_name in request.certificate_arns:
            return
        principals = self._iot.list_thing_principals(device.thing_name)
        certificate_arn = _pick_certificate(principals)
        if certificate_arn is None:
            raise PartialDeviceFailure(
                device.thing_name,
                f"No certificate is attached to thing {device.thing_name}",
            )
        request.certificate_arns[device.thing_name] = certificate_arn


def _pick_certificate(principals: list[str]) -> str | None:
    certificates = [arn for arn in principals if ":cert/" in arn]
    if certificates:
        return certificates[0]
    return principals[0] if principals else None
