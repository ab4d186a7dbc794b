from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from ggprov_core.devices.request import AssociationRequest
from ggprov_core.devices.types import STATUS_FAILURE, STATUS_SUCCESS, DeviceItem
from ggprov_core.logging import get_logger
from ggprov_core.stores.interfaces import DeviceTaskStore, GroupStore

logger = get_logger(__name__)

ALL_DEVICES_FAILED = "All devices failed association"


class SaveGroupHandler:
    """Terminal step: settle final statuses and persist task, devices and group.

    This is the only place that writes the final per-device and per-task
    status. It is safe to call on a request whose metadata was never fully
    resolved.
    """

    name = "save-group"

    def __init__(self, tasks: DeviceTaskStore, groups: GroupStore) -> None:
        self._tasks = tasks
        self._groups = groups

    def handle(self, request: AssociationRequest) -> None:
        now = datetime.now(timezone.utc).isoformat()
        task = request.task_info
        group = request.group

        if group.has_failed:
            message = group.status_message or "Association failed"
            for device in task.devices:
                if device.status != STATUS_FAILURE:
                    request.fail_device(device, message)
        else:
            for device in task.devices:
                if device.status != STATUS_FAILURE:
                    device.status = STATUS_SUCCESS
                    device.status_message = None
                    device.group_name = group.name
                    device.updated_at = now
            if not any(device.status == STATUS_SUCCESS for device in task.devices):
                group.mark_failed(ALL_DEVICES_FAILED)

        if group.has_failed:
            task.status = STATUS_FAILURE
            task.status_message = group.status_message
        else:
            group.task_status = STATUS_SUCCESS
            group.status_message = None
            task.status = STATUS_SUCCESS
            task.status_message = None
        task.updated_at = now

        succeeded = [
            _registry_record(device)
            for device in task.devices
            if device.status == STATUS_SUCCESS
        ]
        self._groups.save(group)
        self._tasks.save_devices(succeeded)
        # The terminal task record is written last; redelivery skips on it.
        self._tasks.save_device_association_task(task)
        logger.info(
            "Association task saved",
            extra={
                "task_id": task.task_id,
                "group_name": group.name,
                "status": task.status,
                "device_count": len(succeeded),
                "error_message": task.status_message,
            },
        )


def _registry_record(device: DeviceItem) -> DeviceItem:
    return replace(
        device,
        provisioning_parameters=None,
        artifacts=dict(device.artifacts) if device.artifacts else None,
    )
