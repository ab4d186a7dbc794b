from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from ggprov_core.devices.types import STATUS_FAILURE, DeviceItem, DeviceTaskSummary
from ggprov_core.greengrass.types import (
    GgDefinitionVersion,
    GgGroupInfo,
    GgGroupVersion,
    ThingInfo,
)
from ggprov_core.groups.types import GroupItem
from ggprov_core.templates.types import TemplateItem


@dataclass
class AssociationRequest:
    """Mutable context threaded through one run of the association chain.

    The orchestrator fills the group and Greengrass metadata; each step reads
    what earlier steps wrote and adds its own results (things, certificates,
    the new group version). A request is owned by a single chain execution.
    """

    task_info: DeviceTaskSummary
    group: GroupItem
    gg_group: GgGroupInfo | None = None
    gg_group_version: GgGroupVersion | None = None
    gg_core_version: GgDefinitionVersion | None = None
    gg_device_version: GgDefinitionVersion | None = None
    template: TemplateItem | None = None
    things: dict[str, ThingInfo] = field(default_factory=dict)
    certificate_arns: dict[str, str] = field(default_factory=dict)
    new_group_version: GgGroupVersion | None = None
    finalizing: bool = False
    finalized: bool = False

    @property
    def task_failed(self) -> bool:
        return self.group.has_failed

    def active_devices(self) -> list[DeviceItem]:
        return [
            device
            for device in self.task_info.devices
            if device.status != STATUS_FAILURE
        ]

    def fail_device(self, device: DeviceItem, message: str) -> None:
        device.status = STATUS_FAILURE
        device.status_message = message
        device.updated_at = datetime.now(timezone.utc).isoformat()

    def fail_task(self, message: str) -> bool:
        return self.group.mark_failed(message)
