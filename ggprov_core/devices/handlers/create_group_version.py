from __future__ import annotations

from ggprov_core.devices.request import AssociationRequest
from ggprov_core.devices.types import DeviceItem
from ggprov_core.errors import TaskFailure
from ggprov_core.greengrass.interfaces import GreengrassClient
from ggprov_core.greengrass.types import (
    EMPTY_DEFINITION,
    GgDefinitionEntry,
    GgDefinitionVersion,
)
from ggprov_core.logging import get_logger

logger = get_logger(__name__)


class CreateGroupVersionHandler:
    name = "create-group-version"

    def __init__(self, greengrass: GreengrassClient) -> None:
        self._greengrass = greengrass

    def handle(self, request: AssociationRequest) -> None:
        active = request.active_devices()
        if not active:
            raise TaskFailure(
                f"No devices are eligible for association with group {request.group.name}"
            )
        base = request.gg_group_version
        if base is None:
            raise TaskFailure(f"Group {request.group.name} has no group version")

        cores = [device for device in active if device.is_core]
        devices = [device for device in active if not device.is_core]

        core_arn = base.core_definition_version_arn
        if cores:
            core_version = self._greengrass.create_core_definition_version(
                definition_id=(request.gg_core_version or EMPTY_DEFINITION).definition_id,
                name=f"{request.group.name}_core_def",
                cores=_merge_entries(request, request.gg_core_version, cores),
            )
            core_arn = core_version.arn

        device_arn = base.device_definition_version_arn
        if devices:
            device_version = self._greengrass.create_device_definition_version(
                definition_id=(
                    request.gg_device_version or EMPTY_DEFINITION
                ).definition_id,
                name=f"{request.group.name}_device_def",
                devices=_merge_entries(request, request.gg_device_version, devices),
            )
            device_arn = device_version.arn

        group_version = self._greengrass.create_group_version(
            base=base,
            core_definition_version_arn=core_arn,
            device_definition_version_arn=device_arn,
        )
        request.new_group_version = group_version
        request.group.version_id = group_version.version
        request.group.version_no = (request.group.version_no or 0) + 1
        request.group.deployed = False
        logger.info(
            "Created group version",
            extra={
                "task_id": request.task_info.task_id,
                "group_name": request.group.name,
                "version_id": group_version.version,
                "device_count": len(active),
            },
        )


def _merge_entries(
    request: AssociationRequest,
    existing: GgDefinitionVersion | None,
    additions: list[DeviceItem],
) -> list[GgDefinitionEntry]:
    """Existing definition entries with the given devices added or replaced."""
    new_entries: list[GgDefinitionEntry] = []
    for device in additions:
        thing = request.things.get(device.thing_name)
        certificate_arn = request.certificate_arns.get(device.thing_name)
        if thing is None or certificate_arn is None:
            raise TaskFailure(
                f"Thing {device.thing_name} is missing its thing or certificate"
            )
        new_entries.append(
            GgDefinitionEntry(
                id=device.thing_name,
                thing_arn=thing.thing_arn,
                certificate_arn=certificate_arn,
                sync_shadow=device.sync_shadow,
            )
        )
    replaced = {entry.thing_arn for entry in new_entries}
    kept = [
        entry
        for entry in (existing or EMPTY_DEFINITION).entries
        if entry.thing_arn not in replaced
    ]
    return kept + new_entries
