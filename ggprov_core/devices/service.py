from __future__ import annotations

import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Iterable, Mapping, TypeVar

from ggprov_core.devices.chain import HandlerChain
from ggprov_core.devices.messages import (
    decode_task_message,
    encode_task_message,
    is_task_message,
)
from ggprov_core.devices.request import AssociationRequest
from ggprov_core.devices.store import device_from_dict
from ggprov_core.devices.types import (
    DEVICE_TYPE_CORE,
    DEVICE_TYPE_DEVICE,
    STATUS_FAILURE,
    STATUS_IN_PROGRESS,
    STATUS_WAITING,
    DeviceItem,
    DeviceTaskSummary,
)
from ggprov_core.errors import NotFoundError, UpstreamError, ValidationError
from ggprov_core.greengrass.interfaces import GreengrassClient
from ggprov_core.greengrass.types import EMPTY_DEFINITION, GgDefinitionVersion
from ggprov_core.groups.types import GroupItem
from ggprov_core.logging import get_logger
from ggprov_core.queue import QueueMessage, QueuePublisher
from ggprov_core.stores.interfaces import DeviceTaskStore, GroupStore, TemplateStore
from ggprov_core.templates.types import TemplateItem

logger = get_logger(__name__)

T = TypeVar("T")

_DEVICE_TYPES = {DEVICE_TYPE_CORE, DEVICE_TYPE_DEVICE}


class DevicesService:
    """Create device association tasks and run them when they come off the queue.

    Task creation validates the request, persists a `Waiting` task and then
    publishes it. The queue worker calls `handle_queue_message`, which
    resolves the group metadata and drives the association chain. Every
    worker path ends in the chain's terminal step, so a task never stays
    `Waiting` once a delivery has been processed.
    """

    def __init__(
        self,
        *,
        tasks: DeviceTaskStore,
        groups: GroupStore,
        templates: TemplateStore,
        greengrass: GreengrassClient,
        queue: QueuePublisher,
        topic: str | None,
        chain: HandlerChain,
        lookup_timeout_seconds: float = 30.0,
        runner_token: str | None = None,
    ) -> None:
        self._tasks = tasks
        self._groups = groups
        self._templates = templates
        self._greengrass = greengrass
        self._queue = queue
        self._topic = topic
        self._chain = chain
        self._lookup_timeout_seconds = lookup_timeout_seconds
        self._runner_token = runner_token

    def create_device_association_task(
        self,
        group_name: str,
        items: Iterable[Mapping[str, object] | DeviceItem],
    ) -> DeviceTaskSummary:
        group_name = (group_name or "").strip()
        if not group_name:
            raise ValidationError("group_name is required")
        devices = [_parse_device(item) for item in items]
        if not devices:
            raise ValidationError("At least one device is required")
        if not self._topic:
            raise RuntimeError("Device association topic is not configured")

        group = self._get_group_item(group_name)
        self._greengrass.get_group_info(group.id)

        now = datetime.now(timezone.utc).isoformat()
        task = DeviceTaskSummary(
            task_id=str(uuid.uuid4()),
            group_name=group_name,
            status=STATUS_WAITING,
            created_at=now,
            updated_at=now,
            devices=[
                replace(
                    device,
                    status=STATUS_WAITING,
                    status_message=None,
                    created_at=now,
                    updated_at=now,
                )
                for device in devices
            ],
        )
        self._tasks.save_device_association_task(task)
        data, attributes = encode_task_message(task, token=self._runner_token)
        message_id = self._queue.publish(
            topic=self._topic,
            data=data,
            attributes=attributes,
        )
        logger.info(
            "Device association task queued",
            extra={
                "task_id": task.task_id,
                "group_name": group_name,
                "device_count": len(task.devices),
                "message_id": message_id,
                "topic": self._topic,
            },
        )
        return task

    def associate_devices_with_group(self, task_info: DeviceTaskSummary) -> None:
        if not task_info.task_id:
            raise ValidationError("task_id is required")
        if not task_info.group_name:
            raise ValidationError("group_name is required")
        if not task_info.devices:
            raise ValidationError("At least one device is required")

        stored = self._tasks.get_device_association_task(
            task_info.group_name,
            task_info.task_id,
        )
        if stored is not None and stored.is_terminal:
            logger.info(
                "Skipping completed association task",
                extra={
                    "task_id": task_info.task_id,
                    "group_name": task_info.group_name,
                    "status": stored.status,
                },
            )
            return

        group = self._groups.get(task_info.group_name)
        if group is None:
            self._fail_without_group(
                task_info,
                f"Group {task_info.group_name} does not exist",
            )
            return

        group.task_status = STATUS_IN_PROGRESS
        group.status_message = None
        request = AssociationRequest(task_info=task_info, group=group)

        started = time.monotonic()
        try:
            self._resolve_group_metadata(request)
        except Exception as exc:
            request.fail_task(str(exc))
            logger.warning(
                "Group metadata lookup failed",
                extra={
                    "task_id": task_info.task_id,
                    "group_name": group.name,
                    "error_message": str(exc),
                },
            )
            self._chain.finalize(request)
            return

        now = datetime.now(timezone.utc).isoformat()
        task_info.status = STATUS_IN_PROGRESS
        task_info.status_message = None
        task_info.updated_at = now
        for device in task_info.devices:
            device.status = STATUS_IN_PROGRESS
            device.status_message = None
            device.updated_at = now
        self._tasks.save_device_association_task(task_info)

        try:
            self._chain.run(request)
        except Exception as exc:
            if request.finalizing:
                # The stored task is not terminal yet; redelivery retries it.
                logger.exception(
                    "Saving association task failed",
                    extra={
                        "task_id": task_info.task_id,
                        "group_name": group.name,
                        "error_message": str(exc),
                    },
                )
                raise
            request.fail_task(str(exc))
            logger.exception(
                "Association chain failed",
                extra={
                    "task_id": task_info.task_id,
                    "group_name": group.name,
                    "error_message": str(exc),
                },
            )
            self._chain.finalize(request)

        logger.info(
            "Association task finished",
            extra={
                "task_id": task_info.task_id,
                "group_name": group.name,
                "status": task_info.status,
                "duration_ms": int((time.monotonic() - started) * 1000),
            },
        )

    def get_device_association_task(
        self,
        group_name: str,
        task_id: str,
    ) -> DeviceTaskSummary:
        if not task_id:
            raise ValidationError("task_id is required")
        task = self._tasks.get_device_association_task(group_name, task_id)
        if task is None:
            raise NotFoundError(
                f"Task {task_id} does not exist for group {group_name}"
            )
        return task

    def get_device(self, device_id: str) -> DeviceItem:
        if not device_id:
            raise ValidationError("device_id is required")
        device = self._tasks.get_device(device_id)
        if device is None:
            raise NotFoundError(f"Device {device_id} does not exist")
        return device

    def handle_queue_message(self, message: QueueMessage) -> bool:
        """Run the association task carried by a queue message.

        Returns False for messages of another type, which are ignored.
        """
        if not is_task_message(message):
            logger.info(
                "Ignoring queue message",
                extra={
                    "message_id": message.message_id,
                    "message_type": message.attributes.get("messageType"),
                },
            )
            return False
        task = decode_task_message(message)
        self.associate_devices_with_group(task)
        return True

    def _get_group_item(self, group_name: str) -> GroupItem:
        group = self._groups.get(group_name)
        if group is None:
            raise NotFoundError(f"Group {group_name} does not exist")
        return group

    def _get_template_item(self, group: GroupItem) -> TemplateItem:
        template = self._templates.get(group.template_name, group.template_version_no)
        if template is None:
            raise NotFoundError(
                f"Template {group.template_name} version "
                f"{group.template_version_no} does not exist"
            )
        return template

    def _resolve_group_metadata(self, request: AssociationRequest) -> None:
        group = request.group
        executor = ThreadPoolExecutor(max_workers=3)
        try:
            template_future = executor.submit(self._get_template_item, group)
            gg_group = self._wait(
                executor.submit(self._greengrass.get_group_info, group.id)
            )
            if not gg_group.latest_version:
                raise NotFoundError(f"Greengrass group {group.id} has no versions")
            gg_group_version = self._wait(
                executor.submit(
                    self._greengrass.get_group_version_info,
                    group.id,
                    gg_group.latest_version,
                )
            )
            core_future = executor.submit(
                _definition,
                self._greengrass.get_core_info,
                gg_group_version.core_definition_version_arn,
            )
            device_future = executor.submit(
                _definition,
                self._greengrass.get_device_info,
                gg_group_version.device_definition_version_arn,
            )
            request.gg_group = gg_group
            request.gg_group_version = gg_group_version
            request.gg_core_version = self._wait(core_future)
            request.gg_device_version = self._wait(device_future)
            request.template = self._wait(template_future)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        if not group.arn:
            group.arn = gg_group.arn

    def _wait(self, future: Future[T]) -> T:
        try:
            return future.result(timeout=self._lookup_timeout_seconds)
        except FutureTimeoutError as exc:
            raise UpstreamError(
                f"Greengrass lookup timed out after {self._lookup_timeout_seconds}s"
            ) from exc

    def _fail_without_group(self, task: DeviceTaskSummary, message: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        task.status = STATUS_FAILURE
        task.status_message = message
        task.updated_at = now
        for device in task.devices:
            device.status = STATUS_FAILURE
            device.status_message = message
            device.updated_at = now
        self._tasks.save_device_association_task(task)
        logger.warning(
            "Association task failed",
            extra={
                "task_id": task.task_id,
                "group_name": task.group_name,
                "error_message": message,
            },
        )


def _definition(
    fetch: Callable[[str], GgDefinitionVersion],
    arn: str | None,
) -> GgDefinitionVersion:
    if not arn:
        return EMPTY_DEFINITION
    return fetch(arn)


def _parse_device(item: Mapping[str, object] | DeviceItem) -> DeviceItem:
    if isinstance(item, DeviceItem):
        device = item
    elif isinstance(item, Mapping):
        device = device_from_dict(dict(item))
    else:
        raise ValidationError("Each device must be an object")
    if not device.thing_name:
        raise ValidationError("thing_name is required for each device")
    if not device.type:
        raise ValidationError(f"type is required for device {device.thing_name}")
    if device.type.lower() not in _DEVICE_TYPES:
        allowed = ", ".join(sorted(_DEVICE_TYPES))
        raise ValidationError(
            f"type for device {device.thing_name} must be one of: {allowed}"
        )
    if not device.provisioning_template:
        raise ValidationError(
            f"provisioning_template is required for device {device.thing_name}"
        )
    return device
