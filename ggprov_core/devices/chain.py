from __future__ import annotations

import time
from typing import Protocol, Sequence

from ggprov_core.devices.request import AssociationRequest
from ggprov_core.devices.types import DeviceItem
from ggprov_core.errors import PartialDeviceFailure, TaskFailure
from ggprov_core.logging import get_logger

logger = get_logger(__name__)


class AssociationStep(Protocol):
    name: str

    def handle(self, request: AssociationRequest) -> None:
        ...


class DeviceStep:
    """Step that acts on each still-active device on its own.

    `handle_device` raises `PartialDeviceFailure` to fail only that device;
    the remaining devices are still processed.
    """

    name = "device-step"

    def handle(self, request: AssociationRequest) -> None:
        for device in request.active_devices():
            try:
                self.handle_device(request, device)
            except PartialDeviceFailure as exc:
                request.fail_device(device, exc.message)
                logger.warning(
                    "Device failed association step",
                    extra={
                        "task_id": request.task_info.task_id,
                        "group_name": request.group.name,
                        "thing_name": device.thing_name,
                        "step": self.name,
                        "error_message": exc.message,
                    },
                )

    def handle_device(self, request: AssociationRequest, device: DeviceItem) -> None:
        raise NotImplementedError


class HandlerChain:
    """Ordered association steps followed by a terminal persistence step.

    Steps run in sequence. A `TaskFailure` (or a task failure recorded on the
    group by a step) stops the remaining steps; the terminal step runs in
    every case. Other exceptions propagate to the caller, which is expected
    to call `finalize`.
    """

    def __init__(
        self,
        steps: Sequence[AssociationStep],
        terminal: AssociationStep,
    ) -> None:
        self._steps = tuple(steps)
        self._terminal = terminal

    @property
    def step_names(self) -> tuple[str, ...]:
        return tuple(step.name for step in self._steps) + (self._terminal.name,)

    def run(self, request: AssociationRequest) -> None:
        for step in self._steps:
            if request.task_failed:
                break
            started = time.monotonic()
            try:
                step.handle(request)
            except TaskFailure as exc:
                request.fail_task(str(exc))
                logger.warning(
                    "Association task failed",
                    extra={
                        "task_id": request.task_info.task_id,
                        "group_name": request.group.name,
                        "step": step.name,
                        "error_message": request.group.status_message,
                    },
                )
                break
            logger.info(
                "Association step completed",
                extra={
                    "task_id": request.task_info.task_id,
                    "group_name": request.group.name,
                    "step": step.name,
                    "duration_ms": int((time.monotonic() - started) * 1000),
                },
            )
        self.finalize(request)

    def finalize(self, request: AssociationRequest) -> None:
        """Run the terminal step once per request, even if it raised before."""
        if request.finalizing:
            return
        request.finalizing = True
        self._terminal.handle(request)
        request.finalized = True
