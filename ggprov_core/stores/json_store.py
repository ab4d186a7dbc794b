from __future__ import annotations

from typing import Iterable

from ggprov_core.devices import store as device_store
from ggprov_core.devices.types import DeviceItem, DeviceTaskSummary
from ggprov_core.groups import store as group_store
from ggprov_core.groups.types import GroupItem
from ggprov_core.stores.interfaces import DeviceTaskStore, GroupStore, TemplateStore
from ggprov_core.templates import store as template_store
from ggprov_core.templates.types import TemplateItem


class JsonDeviceTaskStore(DeviceTaskStore):
    def __init__(self, base_uri: str) -> None:
        self._base_uri = base_uri

    def save_device_association_task(
        self,
        task: DeviceTaskSummary,
    ) -> DeviceTaskSummary:
        return device_store.save_device_association_task(self._base_uri, task)

    def get_device_association_task(
        self,
        group_name: str,
        task_id: str,
    ) -> DeviceTaskSummary | None:
        return device_store.get_device_association_task(
            self._base_uri,
            group_name,
            task_id,
        )

    def get_device(self, thing_name: str) -> DeviceItem | None:
        return device_store.get_device(self._base_uri, thing_name)

    def save_devices(self, devices: Iterable[DeviceItem]) -> list[DeviceItem]:
        return device_store.save_devices(self._base_uri, devices)


class JsonGroupStore(GroupStore):
    def __init__(self, base_uri: str) -> None:
        self._base_uri = base_uri

    def get(self, name: str) -> GroupItem | None:
        return group_store.get_group(self._base_uri, name)

    def save(self, group: GroupItem) -> GroupItem:
        return group_store.save_group(self._base_uri, group)


class JsonTemplateStore(TemplateStore):
    def __init__(self, base_uri: str) -> None:
        self._base_uri = base_uri

    def get(self, name: str, version_no: int | None = None) -> TemplateItem | None:
        return template_store.get_template(self._base_uri, name, version_no)

    def save(self, template: TemplateItem) -> TemplateItem:
        return template_store.save_template(self._base_uri, template)
