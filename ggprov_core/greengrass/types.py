from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GgGroupInfo:
    id: str
    arn: str | None
    name: str | None
    latest_version: str | None
    latest_version_arn: str | None


@dataclass(frozen=True)
class GgGroupVersion:
    group_id: str
    version: str | None
    arn: str | None
    core_definition_version_arn: str | None = None
    device_definition_version_arn: str | None = None
    function_definition_version_arn: str | None = None
    logger_definition_version_arn: str | None = None
    resource_definition_version_arn: str | None = None
    subscription_definition_version_arn: str | None = None
    connector_definition_version_arn: str | None = None


@dataclass(frozen=True)
class GgDefinitionEntry:
    id: str
    thing_arn: str
    certificate_arn: str
    sync_shadow: bool = True


@dataclass(frozen=True)
class GgDefinitionVersion:
    arn: str | None
    definition_id: str | None
    version: str | None
    entries: tuple[GgDefinitionEntry, ...] = ()

    def thing_arns(self) -> set[str]:
        return {entry.thing_arn for entry in self.entries}


EMPTY_DEFINITION = GgDefinitionVersion(arn=None, definition_id=None, version=None)


@dataclass(frozen=True)
class ThingInfo:
    thing_name: str
    thing_arn: str
    thing_id: str | None = None
    attributes: dict[str, str] | None = None
    version: int | None = None


@dataclass(frozen=True)
class ProvisionedThing:
    thing_name: str
    thing_arn: str | None
    certificate_arn: str | None
    certificate_id: str | None = None


@dataclass(frozen=True)
class IotEndpoints:
    iot_host: str
    gg_host: str
