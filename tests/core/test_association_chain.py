from __future__ import annotations

import pytest

from ggprov_core.devices.chain import DeviceStep, HandlerChain
from ggprov_core.devices.handlers import build_association_chain, build_core_config
from ggprov_core.devices.handlers.create_group_version import CreateGroupVersionHandler
from ggprov_core.devices.handlers.save_group import (
    ALL_DEVICES_FAILED,
    SaveGroupHandler,
)
from ggprov_core.devices.request import AssociationRequest
from ggprov_core.devices.types import (
    STATUS_FAILURE,
    STATUS_IN_PROGRESS,
    STATUS_SUCCESS,
    DeviceItem,
    DeviceTaskSummary,
)
from ggprov_core.errors import PartialDeviceFailure, TaskFailure
from ggprov_core.groups.types import GroupItem
from ggprov_core.stores import get_store_bundle
from tests.fakes import (
    GROUP_ID,
    FakeGreengrass,
    FakeIot,
    cert_arn,
    entry,
    thing_arn,
)


def _request(*names: str) -> AssociationRequest:
    task = DeviceTaskSummary(
        task_id="task-1",
        group_name="group-1",
        status=STATUS_IN_PROGRESS,
        created_at="2026-01-01T00:00:00+00:00",
        updated_at="2026-01-01T00:00:00+00:00",
        devices=[
            DeviceItem(
                thing_name=name,
                type="device",
                provisioning_template="tmpl-a",
                status=STATUS_IN_PROGRESS,
            )
            for name in names
        ],
    )
    group = GroupItem(
        id=GROUP_ID,
        name="group-1",
        template_name="group-template",
        template_version_no=1,
        task_status=STATUS_IN_PROGRESS,
    )
    return AssociationRequest(task_info=task, group=group)


class _Recorder:
    def __init__(self, name: str, calls: list[str], error: Exception | None = None):
        self.name = name
        self._calls = calls
        self._error = error

    def handle(self, request: AssociationRequest) -> None:
        self._calls.append(self.name)
        if self._error is not None:
            raise self._error


class _FailOne(DeviceStep):
    name = "fail-one"

    def __init__(self, thing_name: str) -> None:
        self._thing_name = thing_name
        self.seen: list[str] = []

    def handle_device(self, request, device) -> None:
        self.seen.append(device.thing_name)
        if device.thing_name == self._thing_name:
            raise PartialDeviceFailure(device.thing_name, "bad device")


@pytest.mark.core
def test_chain_runs_steps_in_order_then_terminal():
    calls: list[str] = []
    chain = HandlerChain(
        steps=[_Recorder("a", calls), _Recorder("b", calls)],
        terminal=_Recorder("save", calls),
    )
    request = _request("d1")

    chain.run(request)

    assert calls == ["a", "b", "save"]
    assert chain.step_names == ("a", "b", "save")
    assert request.finalized is True


@pytest.mark.core
def test_task_failure_skips_to_terminal():
    calls: list[str] = []
    chain = HandlerChain(
        steps=[
            _Recorder("a", calls, TaskFailure("first failure")),
            _Recorder("b", calls),
        ],
        terminal=_Recorder("save", calls),
    )
    request = _request("d1")

    chain.run(request)

    assert calls == ["a", "save"]
    assert request.group.task_status == STATUS_FAILURE
    assert request.group.status_message == "first failure"


@pytest.mark.core
def test_unexpected_error_propagates_without_terminal():
    calls: list[str] = []
    chain = HandlerChain(
        steps=[_Recorder("a", calls, RuntimeError("boom"))],
        terminal=_Recorder("save", calls),
    )
    request = _request("d1")

    with pytest.raises(RuntimeError):
        chain.run(request)

    assert calls == ["a"]
    assert request.finalized is False


@pytest.mark.core
def test_terminal_step_runs_once_after_it_raises():
    calls: list[str] = []
    chain = HandlerChain(
        steps=[_Recorder("a", calls)],
        terminal=_Recorder("save", calls, RuntimeError("store down")),
    )
    request = _request("d1")

    with pytest.raises(RuntimeError):
        chain.run(request)
    chain.finalize(request)

    assert calls == ["a", "save"]
    assert request.finalizing is True
    assert request.finalized is False


@pytest.mark.core
def test_device_failure_does_not_stop_siblings():
    step = _FailOne("d1")
    request = _request("d1", "d2", "d3")

    step.handle(request)

    assert step.seen == ["d1", "d2", "d3"]
    assert [device.status for device in request.task_info.devices] == [
        STATUS_FAILURE,
        STATUS_IN_PROGRESS,
        STATUS_IN_PROGRESS,
    ]
    assert request.active_devices()[0].thing_name == "d2"


@pytest.mark.core
def test_first_failure_wins_on_group():
    group = GroupItem(id="g", name="group-1", template_name="t", template_version_no=1)

    assert group.mark_failed("first") is True
    assert group.mark_failed("second") is False
    assert group.status_message == "first"


@pytest.mark.core
def test_build_association_chain_order(tmp_path):
    stores = get_store_bundle(tmp_path.as_posix(), "json")
    chain = build_association_chain(
        iot=FakeIot(),
        greengrass=FakeGreengrass(),
        tasks=stores.tasks,
        groups=stores.groups,
        artifacts_uri=(tmp_path / "artifacts").as_posix(),
    )

    assert chain.step_names == (
        "get-thing-1",
        "existing-association",
        "provision-thing",
        "get-thing-2",
        "core-config",
        "get-principal",
        "create-group-version",
        "save-group",
    )


@pytest.mark.core
def test_create_group_version_replaces_same_thing_entries():
    greengrass = FakeGreengrass()
    base = greengrass.add_group(GROUP_ID, devices=[entry("d1"), entry("d9")])
    request = _request("d1", "d2")
    request.gg_group_version = base
    request.gg_core_version = greengrass.definitions[base.core_definition_version_arn]
    request.gg_device_version = greengrass.definitions[
        base.device_definition_version_arn
    ]
    iot = FakeIot()
    for name in ("d1", "d2"):
        request.things[name] = iot.add_thing(name)
        request.certificate_arns[name] = cert_arn(f"new-{name}")
    request.task_info.devices[1].sync_shadow = False

    CreateGroupVersionHandler(greengrass).handle(request)

    entries = greengrass.created_device_versions[0].entries
    assert [item.thing_arn for item in entries] == [
        thing_arn("d9"),
        thing_arn("d1"),
        thing_arn("d2"),
    ]
    assert entries[1].certificate_arn == cert_arn("new-d1")
    assert entries[2].sync_shadow is False
    assert greengrass.created_core_versions == []
    created = greengrass.created_group_versions[0]
    assert created.core_definition_version_arn == base.core_definition_version_arn
    assert request.group.version_id == created.version
    assert request.new_group_version == created


@pytest.mark.core
def test_create_group_version_without_devices_fails_task():
    request = _request("d1")
    request.fail_device(request.task_info.devices[0], "gone")

    with pytest.raises(TaskFailure, match="No devices are eligible"):
        CreateGroupVersionHandler(FakeGreengrass()).handle(request)


@pytest.mark.core
def test_save_group_marks_all_failed_when_nothing_succeeded(tmp_path):
    stores = get_store_bundle(tmp_path.as_posix(), "json")
    request = _request("d1", "d2")
    for device in request.task_info.devices:
        request.fail_device(device, "bad device")

    SaveGroupHandler(stores.tasks, stores.groups).handle(request)

    task = stores.tasks.get_device_association_task("group-1", "task-1")
    assert task.status == STATUS_FAILURE
    assert task.status_message == ALL_DEVICES_FAILED
    assert stores.groups.get("group-1").task_status == STATUS_FAILURE


@pytest.mark.core
def test_save_group_fails_remaining_devices_with_task_message(tmp_path):
    stores = get_store_bundle(tmp_path.as_posix(), "json")
    request = _request("d1", "d2")
    request.fail_device(request.task_info.devices[0], "own message")
    request.fail_task("task message")

    SaveGroupHandler(stores.tasks, stores.groups).handle(request)

    task = stores.tasks.get_device_association_task("group-1", "task-1")
    assert [device.status_message for device in task.devices] == [
        "own message",
        "task message",
    ]
    assert stores.tasks.get_device("d2") is None


@pytest.mark.core
def test_save_group_registers_successful_devices(tmp_path):
    stores = get_store_bundle(tmp_path.as_posix(), "json")
    request = _request("d1")

    SaveGroupHandler(stores.tasks, stores.groups).handle(request)

    task = stores.tasks.get_device_association_task("group-1", "task-1")
    assert task.status == STATUS_SUCCESS
    registered = stores.tasks.get_device("d1")
    assert registered.status == STATUS_SUCCESS
    assert registered.group_name == "group-1"
    assert stores.groups.get("group-1").task_status == STATUS_SUCCESS


@pytest.mark.core
def test_core_config_document():
    iot = FakeIot()
    thing = iot.add_thing("core-1")

    document = build_core_config(
        thing,
        iot.endpoints(),
        overrides={
            "runtime": {"cgroup": {"useSystemd": "no"}},
            "coreThing": {"thingArn": "ignored"},
        },
    )

    assert document["coreThing"]["thingArn"] == thing_arn("core-1")
    assert document["coreThing"]["certPath"] == "core-1.cert.pem"
    assert document["coreThing"]["iotHost"].endswith("amazonaws.com")
    assert document["runtime"]["cgroup"]["useSystemd"] == "no"
    assert document["crypto"]["principals"]["IoTCertificate"]["privateKeyPath"] == (
        "file:///greengrass/certs/core-1.private.key"
    )

    with pytest.raises(TaskFailure):
        build_core_config(thing, iot.endpoints(), overrides={"coreThing": "bad"})
