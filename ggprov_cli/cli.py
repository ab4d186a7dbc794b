from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

from ggprov_core.config import get_config
from ggprov_core.groups.types import GroupItem
from ggprov_core.stores import StoreBundle, get_store_bundle
from ggprov_core.templates.types import TemplateItem


def _stores() -> StoreBundle:
    config = get_config()
    return get_store_bundle(config.control_root_uri(), config.control_plane_store)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _load_core_config(value: str | None) -> dict[str, object] | None:
    if not value:
        return None
    if value.lstrip().startswith("{"):
        raw = value
    else:
        raw = Path(value).read_text(encoding="utf-8")
    parsed = json.loads(raw)
    if not isinstance(parsed, dict):
        raise ValueError("--core-config must be a JSON object")
    return parsed


def cmd_groups_save(args: argparse.Namespace) -> int:
    group = GroupItem(
        id=args.id,
        name=args.name,
        template_name=args.template_name,
        template_version_no=args.template_version_no,
        arn=args.arn,
    )
    _print_json(asdict(_stores().groups.save(group)))
    return 0


def cmd_templates_save(args: argparse.Namespace) -> int:
    template = TemplateItem(
        name=args.name,
        version_no=0,
        group_id=args.group_id,
        group_version_id=args.group_version_id,
        enabled=args.enabled,
        core_config=_load_core_config(args.core_config),
    )
    _print_json(asdict(_stores().templates.save(template)))
    return 0


def cmd_tasks_get(args: argparse.Namespace) -> int:
    task = _stores().tasks.get_device_association_task(args.group, args.task_id)
    if task is None:
        print(f"Task {args.task_id} not found for group {args.group}", file=sys.stderr)
        return 1
    _print_json(asdict(task))
    return 0


def cmd_devices_get(args: argparse.Namespace) -> int:
    device = _stores().tasks.get_device(args.thing_name)
    if device is None:
        print(f"Device {args.thing_name} not found", file=sys.stderr)
        return 1
    _print_json(asdict(device))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ggprov")
    subparsers = parser.add_subparsers(dest="command")

    groups_parser = subparsers.add_parser("groups", help="Manage groups")
    groups_sub = groups_parser.add_subparsers(dest="action", required=True)
    group_save = groups_sub.add_parser("save", help="Create or update a group")
    group_save.add_argument("--name", required=True)
    group_save.add_argument("--id", required=True, help="Greengrass group id")
    group_save.add_argument("--template-name", required=True)
    group_save.add_argument("--template-version-no", type=int, required=True)
    group_save.add_argument("--arn")
    group_save.set_defaults(func=cmd_groups_save)

    templates_parser = subparsers.add_parser("templates", help="Manage templates")
    templates_sub = templates_parser.add_subparsers(dest="action", required=True)
    template_save = templates_sub.add_parser(
        "save",
        help="Save a new template version",
    )
    template_save.add_argument("--name", required=True)
    template_save.add_argument("--group-id")
    template_save.add_argument("--group-version-id")
    template_save.add_argument(
        "--core-config",
        help="JSON object or path to a JSON file merged into the core config",
    )
    template_save.add_argument(
        "--enabled",
        action=argparse.BooleanOptionalAction,
        default=True,
    )
    template_save.set_defaults(func=cmd_templates_save)

    tasks_parser = subparsers.add_parser("tasks", help="Inspect association tasks")
    tasks_sub = tasks_parser.add_subparsers(dest="action", required=True)
    task_get = tasks_sub.add_parser("get", help="Show an association task")
    task_get.add_argument("--group", required=True)
    task_get.add_argument("--task-id", required=True)
    task_get.set_defaults(func=cmd_tasks_get)

    devices_parser = subparsers.add_parser("devices", help="Inspect devices")
    devices_sub = devices_parser.add_subparsers(dest="action", required=True)
    device_get = devices_sub.add_parser("get", help="Show a registered device")
    device_get.add_argument("thing_name")
    device_get.set_defaults(func=cmd_devices_get)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "command", None):
        parser.print_help()
        return 2
    try:
        return args.func(args)
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
