from __future__ import annotations

from typing import Any, Mapping

from botocore.exceptions import BotoCoreError, ClientError

from aws_adapter.session import build_client, is_not_found, translate_error
from ggprov_core.config import Config
from ggprov_core.errors import UpstreamError
from ggprov_core.greengrass.interfaces import IotClient
from ggprov_core.greengrass.types import IotEndpoints, ProvisionedThing, ThingInfo
from ggprov_core.logging import get_logger

logger = get_logger(__name__)

DATA_ENDPOINT_TYPE = "iot:Data-ATS"


class BotoIotClient(IotClient):
    def __init__(self, client: Any, *, region: str | None = None) -> None:
        self._client = client
        self._region = region
        self._endpoints: IotEndpoints | None = None

    @classmethod
    def from_config(cls, config: Config) -> "BotoIotClient":
        return cls(build_client("iot", config), region=config.aws_region)

    def describe_thing(self, thing_name: str) -> ThingInfo | None:
        try:
            response = self._client.describe_thing(thingName=thing_name)
        except ClientError as exc:
            if is_not_found(exc):
                return None
            raise translate_error(exc, "IoT describe thing failed") from exc
        except BotoCoreError as exc:
            raise translate_error(exc, "IoT describe thing failed") from exc
        return ThingInfo(
            thing_name=response.get("thingName", thing_name),
            thing_arn=response["thingArn"],
            thing_id=response.get("thingId"),
            attributes=dict(response.get("attributes") or {}),
            version=response.get("version"),
        )

    def list_thing_principals(self, thing_name: str) -> list[str]:
        response = self._call(
            "list thing principals",
            self._client.list_thing_principals,
            thingName=thing_name,
        )
        return list(response.get("principals") or [])

    def provision_thing(
        self,
        *,
        template_name: str,
        parameters: Mapping[str, str],
    ) -> ProvisionedThing:
        template = self._call(
            "describe provisioning template",
            self._client.describe_provisioning_template,
            templateName=template_name,
        )
        body = template.get("templateBody")
        if not body:
            raise UpstreamError(f"Provisioning template {template_name} has no body")
        response = self._call(
            "register thing",
            self._client.register_thing,
            templateBody=body,
            parameters=dict(parameters),
        )
        resources = response.get("resourceArns") or {}
        certificate_arn = resources.get("certificate")
        thing_name = parameters.get("ThingName", "")
        logger.info(
            "Registered thing",
            extra={"thing_name": thing_name},
        )
        return ProvisionedThing(
            thing_name=thing_name,
            thing_arn=resources.get("thing"),
            certificate_arn=certificate_arn,
            certificate_id=certificate_arn.rsplit("/", 1)[-1]
            if certificate_arn
            else None,
        )

    def endpoints(self) -> IotEndpoints:
        if self._endpoints is None:
            response = self._call(
                "describe endpoint",
                self._client.describe_endpoint,
                endpointType=DATA_ENDPOINT_TYPE,
            )
            region = self._region or self._client.meta.region_name
            self._endpoints = IotEndpoints(
                iot_host=response["endpointAddress"],
                gg_host=f"greengrass-ats.iot.{region}.amazonaws.com",
            )
        return self._endpoints

    def _call(self, action: str, method: Any, **kwargs: Any) -> dict[str, Any]:
        try:
            return method(**kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise translate_error(exc, f"IoT {action} failed") from exc
