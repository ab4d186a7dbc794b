from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from ggprov_core.devices import (
    STATUS_SUCCESS,
    DeviceItem,
    DeviceTaskSummary,
    load_device_tasks,
)
from ggprov_core.groups.types import GroupItem
from ggprov_core.stores import get_store_bundle
from ggprov_core.templates.types import TemplateItem


@pytest.mark.core
def test_template_versions_are_appended(tmp_path):
    stores = get_store_bundle(tmp_path.as_posix(), "json")

    first = stores.templates.save(
        TemplateItem(name="edge", version_no=0, core_config={"managedRespawn": True})
    )
    second = stores.templates.save(TemplateItem(name="edge", version_no=7))

    assert first.version_no == 1
    assert second.version_no == 2
    assert second.created_at == first.created_at
    assert stores.templates.get("edge").version_no == 2
    assert stores.templates.get("edge", 1).core_config == {"managedRespawn": True}
    assert stores.templates.get("edge", 3) is None
    assert stores.templates.get("missing") is None


@pytest.mark.core
def test_group_upsert_keeps_created_at(tmp_path):
    stores = get_store_bundle(tmp_path.as_posix(), "json")
    group = GroupItem(id="g-1", name="group-1", template_name="edge", template_version_no=1)

    created = stores.groups.save(group)
    group.version_no = 4
    updated = stores.groups.save(group)

    assert updated.created_at == created.created_at
    assert stores.groups.get("group-1").version_no == 4
    assert stores.groups.get("group-2") is None


@pytest.mark.core
def test_device_tasks_are_keyed_by_group_and_id(tmp_path):
    base_uri = tmp_path.as_posix()
    stores = get_store_bundle(base_uri, "json")
    task = DeviceTaskSummary(
        task_id="task-1",
        group_name="group-1",
        status="Waiting",
        created_at="2026-01-01T00:00:00+00:00",
        updated_at="2026-01-01T00:00:00+00:00",
        devices=[DeviceItem(thing_name="d1", type="device", provisioning_template="p")],
    )

    stores.tasks.save_device_association_task(task)
    task.status = STATUS_SUCCESS
    stores.tasks.save_device_association_task(task)

    assert len(load_device_tasks(base_uri)) == 1
    assert stores.tasks.get_device_association_task("group-1", "task-1").status == (
        STATUS_SUCCESS
    )
    assert stores.tasks.get_device_association_task("group-2", "task-1") is None


@pytest.mark.core
def test_device_registry_upsert(tmp_path):
    stores = get_store_bundle(tmp_path.as_posix(), "json")
    device = DeviceItem(
        thing_name="d1",
        type="device",
        provisioning_template="p",
        status=STATUS_SUCCESS,
        group_name="group-1",
    )

    first = stores.tasks.save_devices([device])[0]
    device.group_name = "group-2"
    second = stores.tasks.save_devices([device])[0]

    assert second.created_at == first.created_at
    assert stores.tasks.get_device("d1").group_name == "group-2"
    assert stores.tasks.save_devices([]) == []


@pytest.mark.core
def test_concurrent_task_saves_keep_every_record(tmp_path):
    base_uri = tmp_path.as_posix()
    stores = get_store_bundle(base_uri, "json")

    def save_batch(worker: int) -> None:
        for index in range(10):
            stores.tasks.save_device_association_task(
                DeviceTaskSummary(
                    task_id=f"task-{worker}-{index}",
                    group_name=f"group-{worker % 2}",
                    status="InProgress",
                    created_at="2026-01-01T00:00:00+00:00",
                    updated_at="2026-01-01T00:00:00+00:00",
                    devices=[
                        DeviceItem(
                            thing_name=f"d-{worker}-{index}",
                            type="device",
                            provisioning_template="p",
                        )
                    ],
                )
            )
            stores.tasks.get_device_association_task(
                f"group-{worker % 2}",
                f"task-{worker}-{index}",
            )

    with ThreadPoolExecutor(max_workers=8) as executor:
        for future in [executor.submit(save_batch, worker) for worker in range(8)]:
            future.result()

    task_ids = {task.task_id for task in load_device_tasks(base_uri)}
    assert len(task_ids) == 80
    assert stores.tasks.get_device_association_task("group-1", "task-7-9") is not None


@pytest.mark.core
def test_concurrent_registry_upserts_keep_every_device(tmp_path):
    stores = get_store_bundle(tmp_path.as_posix(), "json")

    def register(worker: int) -> None:
        for index in range(10):
            stores.tasks.save_devices(
                [
                    DeviceItem(
                        thing_name=f"d-{worker}-{index}",
                        type="device",
                        provisioning_template="p",
                        status=STATUS_SUCCESS,
                        group_name="group-1",
                    )
                ]
            )

    with ThreadPoolExecutor(max_workers=8) as executor:
        for future in [executor.submit(register, worker) for worker in range(8)]:
            future.result()

    for worker in range(8):
        for index in range(10):
            assert stores.tasks.get_device(f"d-{worker}-{index}") is not None


@pytest.mark.core
def test_store_bundle_rejects_unknown_backend(tmp_path):
    with pytest.raises(ValueError):
        get_store_bundle(tmp_path.as_posix(), "dynamodb")


@pytest.mark.core
def test_memory_filesystem_store():
    stores = get_store_bundle("memory://ggprov-test-stores", "json")
    stores.groups.save(
        GroupItem(id="g-1", name="group-1", template_name="edge", template_version_no=1)
    )
    assert stores.groups.get("group-1").id == "g-1"
