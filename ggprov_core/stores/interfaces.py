from __future__ import annotations

from typing import Iterable, Protocol

from ggprov_core.devices.types import DeviceItem, DeviceTaskSummary
from ggprov_core.groups.types import GroupItem
from ggprov_core.templates.types import TemplateItem


class DeviceTaskStore(Protocol):
    def save_device_association_task(
        self,
        task: DeviceTaskSummary,
    ) -> DeviceTaskSummary:
        ...

    def get_device_association_task(
        self,
        group_name: str,
        task_id: str,
    ) -> DeviceTaskSummary | None:
        ...

    def get_device(self, thing_name: str) -> DeviceItem | None:
        ...

    def save_devices(self, devices: Iterable[DeviceItem]) -> list[DeviceItem]:
        ...


class GroupStore(Protocol):
    def get(self, name: str) -> GroupItem | None:
        ...

    def save(self, group: GroupItem) -> GroupItem:
        ...


class TemplateStore(Protocol):
    def get(self, name: str, version_no: int | None = None) -> TemplateItem | None:
        ...

    def save(self, template: TemplateItem) -> TemplateItem:
        ...
