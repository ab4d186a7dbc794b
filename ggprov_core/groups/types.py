from __future__ import annotations

from dataclasses import dataclass

from ggprov_core.devices.types import STATUS_FAILURE


@dataclass
class GroupItem:
    id: str
    name: str
    template_name: str
    template_version_no: int
    arn: str | None = None
    version_id: str | None = None
    version_no: int | None = None
    deployed: bool = False
    task_status: str | None = None
    status_message: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def has_failed(self) -> bool:
        return self.task_status == STATUS_FAILURE

    def mark_failed(self, message: str) -> bool:
        """Record a task failure unless one is already recorded.

        Returns True when this call recorded the failure.
        """
        if self.task_status == STATUS_FAILURE:
            return False
        self.task_status = STATUS_FAILURE
        self.status_message = message
        return True
