import hmac
import os
from typing import Any

from fastapi import Body, FastAPI, HTTPException
from pydantic import BaseModel

from aws_adapter import BotoGreengrassClient, BotoIotClient
from gcp_adapter.queue_pubsub import PubSubPublisher, parse_pubsub_push
from ggprov_core.config import Config, get_config
from ggprov_core.devices.handlers import build_association_chain
from ggprov_core.devices.service import DevicesService
from ggprov_core.errors import ValidationError
from ggprov_core.logging import configure_logging, get_logger
from ggprov_core.queue import QueueMessage
from ggprov_core.services.fastapi_scaffolding import (
    HealthResponse,
    add_correlation_id_middleware,
    apply_cors_middleware,
    build_health_response,
)
from ggprov_core.stores import get_store_bundle

SERVICE_NAME = "ggprov-devices"

configure_logging(
    service=SERVICE_NAME,
    env=os.getenv("ENV"),
    version=os.getenv("GGPROV_VERSION"),
)
logger = get_logger(__name__)

app = FastAPI()
apply_cors_middleware(app)
add_correlation_id_middleware(app)

_devices_service: DevicesService | None = None


class RunnerResponse(BaseModel):
    status: str
    message_id: str | None = None
    detail: str | None = None


def _get_config() -> Config:
    return get_config()


def build_devices_service(config: Config) -> DevicesService:
    base_uri = config.control_root_uri()
    stores = get_store_bundle(base_uri, config.control_plane_store)
    greengrass = BotoGreengrassClient.from_config(config)
    iot = BotoIotClient.from_config(config)
    chain = build_association_chain(
        iot=iot,
        greengrass=greengrass,
        tasks=stores.tasks,
        groups=stores.groups,
        artifacts_uri=config.artifacts_root_uri(),
    )
    return DevicesService(
        tasks=stores.tasks,
        groups=stores.groups,
        templates=stores.templates,
        greengrass=greengrass,
        queue=PubSubPublisher.from_config(config),
        topic=config.device_association_topic,
        chain=chain,
        lookup_timeout_seconds=config.gg_lookup_timeout_seconds,
        runner_token=config.device_runner_token,
    )


def _devices_service_instance() -> DevicesService:
    global _devices_service
    if _devices_service is None:
        _devices_service = build_devices_service(_get_config())
    return _devices_service


def _runner_authorized(message: QueueMessage) -> None:
    token = _get_config().device_runner_token
    if not token:
        return
    supplied = message.attributes.get("token", "")
    if not hmac.compare_digest(supplied.encode("utf-8"), token.encode("utf-8")):
        raise HTTPException(status_code=403, detail="Forbidden")


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return build_health_response(SERVICE_NAME)


@app.post("/devices/associations/runner", response_model=RunnerResponse)
def association_runner(body: Any = Body(default=None)) -> RunnerResponse:
    try:
        envelope = parse_pubsub_push(body)
    except ValueError as exc:
        logger.warning(
            "Rejected queue delivery",
            extra={"error_message": str(exc)},
        )
        return RunnerResponse(status="rejected", detail=str(exc))

    message = envelope.message
    _runner_authorized(message)
    try:
        handled = _devices_service_instance().handle_queue_message(message)
    except ValidationError as exc:
        logger.warning(
            "Rejected device association task",
            extra={
                "message_id": message.message_id,
                "delivery_attempt": envelope.delivery_attempt,
                "error_message": str(exc),
            },
        )
        return RunnerResponse(
            status="rejected",
            message_id=message.message_id,
            detail=str(exc),
        )
    return RunnerResponse(
        status="ok" if handled else "ignored",
        message_id=message.message_id,
    )
