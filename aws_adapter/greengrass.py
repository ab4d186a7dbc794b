from __future__ import annotations

import re
from typing import Any, Iterable

from botocore.exceptions import BotoCoreError, ClientError

from aws_adapter.session import build_client, translate_error
from ggprov_core.config import Config
from ggprov_core.errors import ValidationError
from ggprov_core.greengrass.interfaces import GreengrassClient
from ggprov_core.greengrass.types import (
    GgDefinitionEntry,
    GgDefinitionVersion,
    GgGroupInfo,
    GgGroupVersion,
)
from ggprov_core.logging import get_logger

logger = get_logger(__name__)

_DEFINITION_ARN = re.compile(
    r"/greengrass/definition/(?P<kind>[a-z]+)/(?P<id>[^/]+)/versions/(?P<version>[^/]+)$"
)


def parse_definition_arn(arn: str, kind: str) -> tuple[str, str]:
    """Return (definition_id, version_id) from a definition version ARN."""
    match = _DEFINITION_ARN.search(arn or "")
    if match is None or match.group("kind") != kind:
        raise ValidationError(f"Not a {kind} definition version ARN: {arn}")
    return match.group("id"), match.group("version")


class BotoGreengrassClient(GreengrassClient):
    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: Config) -> "BotoGreengrassClient":
        return cls(build_client("greengrass", config))

    def get_group_info(self, group_id: str) -> GgGroupInfo:
        response = self._call("get group", self._client.get_group, GroupId=group_id)
        return GgGroupInfo(
            id=response.get("Id", group_id),
            arn=response.get("Arn"),
            name=response.get("Name"),
            latest_version=response.get("LatestVersion"),
            latest_version_arn=response.get("LatestVersionArn"),
        )

    def get_group_version_info(self, group_id: str, version_id: str) -> GgGroupVersion:
        response = self._call(
            "get group version",
            self._client.get_group_version,
            GroupId=group_id,
            GroupVersionId=version_id,
        )
        definition = response.get("Definition") or {}
        return GgGroupVersion(
            group_id=response.get("Id", group_id),
            version=response.get("Version", version_id),
            arn=response.get("Arn"),
            core_definition_version_arn=definition.get("CoreDefinitionVersionArn"),
            device_definition_version_arn=definition.get("DeviceDefinitionVersionArn"),
            function_definition_version_arn=definition.get(
                "FunctionDefinitionVersionArn"
            ),
            logger_definition_version_arn=definition.get("LoggerDefinitionVersionArn"),
            resource_definition_version_arn=definition.get(
                "ResourceDefinitionVersionArn"
            ),
            subscription_definition_version_arn=definition.get(
                "SubscriptionDefinitionVersionArn"
            ),
            connector_definition_version_arn=definition.get(
                "ConnectorDefinitionVersionArn"
            ),
        )

    def get_core_info(self, arn: str) -> GgDefinitionVersion:
        definition_id, version_id = parse_definition_arn(arn, "cores")
        response = self._call(
            "get core definition version",
            self._client.get_core_definition_version,
            CoreDefinitionId=definition_id,
            CoreDefinitionVersionId=version_id,
        )
        entries = (response.get("Definition") or {}).get("Cores") or []
        return _definition_version(response, definition_id, entries)

    def get_device_info(self, arn: str) -> GgDefinitionVersion:
        definition_id, version_id = parse_definition_arn(arn, "devices")
        response = self._call(
            "get device definition version",
            self._client.get_device_definition_version,
            DeviceDefinitionId=definition_id,
            DeviceDefinitionVersionId=version_id,
        )
        entries = (response.get("Definition") or {}).get("Devices") or []
        return _definition_version(response, definition_id, entries)

    def create_core_definition_version(
        self,
        *,
        definition_id: str | None,
        name: str,
        cores: Iterable[GgDefinitionEntry],
    ) -> GgDefinitionVersion:
        entries = list(cores)
        if not definition_id:
            created = self._call(
                "create core definition",
                self._client.create_core_definition,
                Name=name,
            )
            definition_id = created["Id"]
        response = self._call(
            "create core definition version",
            self._client.create_core_definition_version,
            CoreDefinitionId=definition_id,
            Cores=[_entry_payload(entry) for entry in entries],
        )
        logger.info(
            "Created core definition version",
            extra={"version_id": response.get("Version")},
        )
        return GgDefinitionVersion(
            arn=response.get("Arn"),
            definition_id=definition_id,
            version=response.get("Version"),
            entries=tuple(entries),
        )

    def create_device_definition_version(
        self,
        *,
        definition_id: str | None,
        name: str,
        devices: Iterable[GgDefinitionEntry],
    ) -> GgDefinitionVersion:
        entries = list(devices)
        if not definition_id:
            created = self._call(
                "create device definition",
                self._client.create_device_definition,
                Name=name,
            )
            definition_id = created["Id"]
        response = self._call(
            "create device definition version",
            self._client.create_device_definition_version,
            DeviceDefinitionId=definition_id,
            Devices=[_entry_payload(entry) for entry in entries],
        )
        logger.info(
            "Created device definition version",
            extra={"version_id": response.get("Version")},
        )
        return GgDefinitionVersion(
            arn=response.get("Arn"),
            definition_id=definition_id,
            version=response.get("Version"),
            entries=tuple(entries),
        )

    def create_group_version(
        self,
        *,
        base: GgGroupVersion,
        core_definition_version_arn: str | None,
        device_definition_version_arn: str | None,
    ) -> GgGroupVersion:
        group_args: dict[str, str] = {"GroupId": base.group_id}
        arns = {
            "CoreDefinitionVersionArn": core_definition_version_arn,
            "DeviceDefinitionVersionArn": device_definition_version_arn,
            "FunctionDefinitionVersionArn": base.function_definition_version_arn,
            "LoggerDefinitionVersionArn": base.logger_definition_version_arn,
            "ResourceDefinitionVersionArn": base.resource_definition_version_arn,
            "SubscriptionDefinitionVersionArn": base.subscription_definition_version_arn,
            "ConnectorDefinitionVersionArn": base.connector_definition_version_arn,
        }
        group_args.update({key: value for key, value in arns.items() if value})
        response = self._call(
            "create group version",
            self._client.create_group_version,
            **group_args,
        )
        return GgGroupVersion(
            group_id=response.get("Id", base.group_id),
            version=response.get("Version"),
            arn=response.get("Arn"),
            core_definition_version_arn=core_definition_version_arn,
            device_definition_version_arn=device_definition_version_arn,
            function_definition_version_arn=base.function_definition_version_arn,
            logger_definition_version_arn=base.logger_definition_version_arn,
            resource_definition_version_arn=base.resource_definition_version_arn,
            subscription_definition_version_arn=base.subscription_definition_version_arn,
            connector_definition_version_arn=base.connector_definition_version_arn,
        )

    def _call(self, action: str, method: Any, **kwargs: Any) -> dict[str, Any]:
        try:
            return method(**kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise translate_error(exc, f"Greengrass {action} failed") from exc


def _definition_version(
    response: dict[str, Any],
    definition_id: str,
    entries: list[dict[str, Any]],
) -> GgDefinitionVersion:
    return GgDefinitionVersion(
        arn=response.get("Arn"),
        definition_id=response.get("Id", definition_id),
        version=response.get("Version"),
        entries=tuple(
            GgDefinitionEntry(
                id=str(entry.get("Id", "")),
                thing_arn=str(entry.get("ThingArn", "")),
                certificate_arn=str(entry.get("CertificateArn", "")),
                sync_shadow=bool(entry.get("SyncShadow", True)),
            )
            for entry in entries
        ),
    )


def _entry_payload(entry: GgDefinitionEntry) -> dict[str, Any]:
    return {
        "Id": entry.id,
        "ThingArn": entry.thing_arn,
        "CertificateArn": entry.certificate_arn,
        "SyncShadow": entry.sync_shadow,
    }
