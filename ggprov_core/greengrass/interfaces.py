from __future__ import annotations

from typing import Iterable, Mapping, Protocol

from ggprov_core.greengrass.types import (
    GgDefinitionEntry,
    GgDefinitionVersion,
    GgGroupInfo,
    GgGroupVersion,
    IotEndpoints,
    ProvisionedThing,
    ThingInfo,
)


class GreengrassClient(Protocol):
    def get_group_info(self, group_id: str) -> GgGroupInfo:
        ...

    def get_group_version_info(self, group_id: str, version_id: str) -> GgGroupVersion:
        ...

    def get_core_info(self, arn: str) -> GgDefinitionVersion:
        ...

    def get_device_info(self, arn: str) -> GgDefinitionVersion:
        ...

    def create_core_definition_version(
        self,
        *,
        definition_id: str | None,
        name: str,
        cores: Iterable[GgDefinitionEntry],
    ) -> GgDefinitionVersion:
        ...

    def create_device_definition_version(
        self,
        *,
        definition_id: str | None,
        name: str,
        devices: Iterable[GgDefinitionEntry],
    ) -> GgDefinitionVersion:
        ...

    def create_group_version(
        self,
        *,
        base: GgGroupVersion,
        core_definition_version_arn: str | None,
        device_definition_version_arn: str | None,
    ) -> GgGroupVersion:
        ...


class IotClient(Protocol):
    def describe_thing(self, thing_name: str) -> ThingInfo | None:
        ...

    def list_thing_principals(self, thing_name: str) -> list[str]:
        ...

    def provision_thing(
        self,
        *,
        template_name: str,
        parameters: Mapping[str, str],
    ) -> ProvisionedThing:
        ...

    def endpoints(self) -> IotEndpoints:
        ...
