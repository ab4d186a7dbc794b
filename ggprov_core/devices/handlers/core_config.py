from __future__ import annotations

import json
from typing import Any, Mapping

from ggprov_core.devices.request import AssociationRequest
from ggprov_core.devices.types import DeviceItem
from ggprov_core.errors import TaskFailure
from ggprov_core.greengrass.interfaces import IotClient
from ggprov_core.greengrass.types import IotEndpoints, ThingInfo
from ggprov_core.logging import get_logger
from ggprov_core.storage.documents import write_text
from ggprov_core.storage.paths import join_uri

logger = get_logger(__name__)

CERTS_DIR = "file:///greengrass/certs"
GG_CONFIG_ARTIFACT = "gg_config"


class CoreConfigHandler:
    """Generate the Greengrass core config document for the core device."""

    name = "core-config"

    def __init__(self, iot: IotClient, *, artifacts_uri: str) -> None:
        self._iot = iot
        self._artifacts_uri = artifacts_uri

    def handle(self, request: AssociationRequest) -> None:
        cores = [device for device in request.active_devices() if device.is_core]
        if not cores:
            return
        if len(cores) > 1:
            names = ", ".join(device.thing_name for device in cores)
            raise TaskFailure(f"Only one core can be associated with a group: {names}")

        core = cores[0]
        thing = request.things.get(core.thing_name)
        if thing is None:
            request.fail_device(core, f"Thing {core.thing_name} has not been resolved")
            return

        existing = request.gg_core_version.thing_arns() if request.gg_core_version else set()
        if existing and thing.thing_arn not in existing:
            request.fail_device(
                core,
                f"Group {request.group.name} already has a different core",
            )
            return

        overrides = request.template.core_config if request.template else None
        document = build_core_config(
            thing,
            self._iot.endpoints(),
            overrides=overrides,
        )
        uri = join_uri(
            self._artifacts_uri,
            request.group.name,
            core.thing_name,
            "config.json",
        )
        write_text(uri, json.dumps(document, indent=2, sort_keys=True))
        _record_artifact(core, GG_CONFIG_ARTIFACT, uri)
        logger.info(
            "Generated core config",
            extra={
                "task_id": request.task_info.task_id,
                "group_name": request.group.name,
                "thing_name": core.thing_name,
            },
        )


def build_core_config(
    thing: ThingInfo,
    endpoints: IotEndpoints,
    *,
    overrides: Mapping[str, object] | None = None,
) -> dict[str, Any]:
    cert_file = f"{thing.thing_name}.cert.pem"
    key_file = f"{thing.thing_name}.private.key"
    document: dict[str, Any] = {
        "coreThing": {
            "caPath": "root.ca.pem",
            "certPath": cert_file,
            "keyPath": key_file,
            "thingArn": thing.thing_arn,
            "iotHost": endpoints.iot_host,
            "ggHost": endpoints.gg_host,
            "keepAlive": 600,
        },
        "runtime": {"cgroup": {"useSystemd": "yes"}},
        "managedRespawn": False,
        "crypto": {
            "caPath": f"{CERTS_DIR}/root.ca.pem",
            "principals": {
                "IoTCertificate": {
                    "privateKeyPath": f"{CERTS_DIR}/{key_file}",
                    "certificatePath": f"{CERTS_DIR}/{cert_file}",
                },
                "SecretsManager": {"privateKeyPath": f"{CERTS_DIR}/{key_file}"},
            },
        },
    }
    if overrides:
        document = _merge(document, overrides)
    core_thing = document.get("coreThing")
    if not isinstance(core_thing, dict):
        raise TaskFailure("Template core_config.coreThing must be an object")
    # identity fields always come from the resolved thing
    core_thing["thingArn"] = thing.thing_arn
    return document


def _merge(base: Mapping[str, Any], overrides: Mapping[str, object]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def _record_artifact(device: DeviceItem, name: str, uri: str) -> None:
    artifacts = dict(device.artifacts or {})
    artifacts[name] = uri
    device.artifacts = artifacts
