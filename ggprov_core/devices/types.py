from __future__ import annotations

from dataclasses import dataclass, field

STATUS_WAITING = "Waiting"
STATUS_IN_PROGRESS = "InProgress"
STATUS_SUCCESS = "Success"
STATUS_FAILURE = "Failure"

TERMINAL_STATUSES: frozenset[str] = frozenset({STATUS_SUCCESS, STATUS_FAILURE})

DEVICE_TYPE_CORE = "core"
DEVICE_TYPE_DEVICE = "device"


@dataclass
class DeviceItem:
    thing_name: str
    type: str
    provisioning_template: str
    status: str = STATUS_WAITING
    status_message: str | None = None
    provisioning_parameters: dict[str, str] | None = None
    sync_shadow: bool = True
    artifacts: dict[str, str] | None = None
    group_name: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_core(self) -> bool:
        return self.type.lower() == DEVICE_TYPE_CORE


@dataclass
class DeviceTaskSummary:
    task_id: str
    group_name: str
    status: str
    created_at: str
    updated_at: str
    devices: list[DeviceItem] = field(default_factory=list)
    status_message: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
