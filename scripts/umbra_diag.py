"""Umbra shadow repository diagnostics CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from umbra.config import UmbraSettings, configure_logging, load_settings
from umbra.git import GitRunnerError
from umbra.shadow import ShadowRepositoryError, ShadowRepositoryManager
from umbra.workspace import DefaultWorkspaceHooks


def load_manager(args: argparse.Namespace) -> ShadowRepositoryManager:
    config_file = getattr(args, "config", None)
    settings: UmbraSettings = load_settings(Path(config_file) if config_file else None)
    configure_logging(settings.log_level)
    workspace = getattr(args, "workspace", None)
    hooks = DefaultWorkspaceHooks(Path(workspace) if workspace else None)
    return ShadowRepositoryManager(settings, hooks=hooks)


def _workspace(args: argparse.Namespace, manager: ShadowRepositoryManager) -> Path:
    if args.workspace:
        return Path(args.workspace).expanduser().absolute()
    return manager.locator.hooks.working_directory()


def _run(coro):
    try:
        return asyncio.run(coro)
    except (ShadowRepositoryError, GitRunnerError) as exc:
        print(f"Shadow repository error: {exc}")
        raise SystemExit(1)


def cmd_locate(args: argparse.Namespace) -> None:
    manager = load_manager(args)
    workspace = _workspace(args, manager)
    locator = manager.locator
    legacy = locator.legacy(args.task_id)
    shared = locator.branch_per_task(workspace)
    payload = {
        "task_id": args.task_id,
        "workspace": str(workspace),
        "legacy": {"path": str(legacy.metadata_path), "exists": locator.exists(legacy)},
        "branch_per_task": {"path": str(shared.metadata_path), "exists": locator.exists(shared)},
        "resolved": locator.resolve(args.task_id, workspace).kind,
        "exists": locator.does_shadow_repository_exist(args.task_id, workspace),
    }
    print(json.dumps(payload, indent=2))


def cmd_init(args: argparse.Namespace) -> None:
    manager = load_manager(args)
    workspace = _workspace(args, manager)
    location = _run(manager.open_task(args.task_id, workspace))
    print(
        json.dumps(
            {
                "task_id": args.task_id,
                "layout": location.kind,
                "metadata_path": str(location.metadata_path),
                "branch": None if location.is_legacy else manager.branches.branch_name(args.task_id),
            },
            indent=2,
        )
    )


def cmd_branches(args: argparse.Namespace) -> None:
    manager = load_manager(args)
    workspace = _workspace(args, manager)
    location = manager.locator.branch_per_task(workspace)
    if not manager.locator.exists(location):
        print(json.dumps({"metadata_path": str(location.metadata_path), "exists": False}, indent=2))
        return

    async def _collect():
        git = manager.git_for(location)
        return await git.branch_local(), await git.revparse("--abbrev-ref", "HEAD")

    branches, head = _run(_collect())
    print(
        json.dumps(
            {"metadata_path": str(location.metadata_path), "exists": True, "head": head, "branches": branches},
            indent=2,
        )
    )


def cmd_stage(args: argparse.Namespace) -> None:
    manager = load_manager(args)
    workspace = _workspace(args, manager)

    async def _stage():
        location = await manager.open_task(args.task_id, workspace)
        return await manager.add_checkpoint_files(location, workspace)

    result = _run(_stage())
    print(json.dumps({"task_id": args.task_id, "success": result.success, "file_count": result.file_count}, indent=2))


def cmd_delete_task(args: argparse.Namespace) -> None:
    manager = load_manager(args)
    deleted = _run(manager.delete_task_branch(args.task_id, worktree_hint=args.workspace))
    print(json.dumps({"task_id": args.task_id, "deleted": deleted}, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Umbra shadow repository diagnostics")
    parser.add_argument("--config", help="YAML settings file")
    sub = parser.add_subparsers(dest="cmd")

    p_locate = sub.add_parser("locate", help="Show legacy and branch-per-task paths for a task")
    p_locate.add_argument("task_id")
    p_locate.add_argument("--workspace")
    p_locate.set_defaults(func=cmd_locate)

    p_init = sub.add_parser("init", help="Create or verify the task's repository and switch to its branch")
    p_init.add_argument("task_id")
    p_init.add_argument("--workspace")
    p_init.set_defaults(func=cmd_init)

    p_branches = sub.add_parser("branches", help="List task branches of a workspace repository")
    p_branches.add_argument("--workspace")
    p_branches.set_defaults(func=cmd_branches)

    p_stage = sub.add_parser("stage", help="Stage the workspace into the task's branch")
    p_stage.add_argument("task_id")
    p_stage.add_argument("--workspace")
    p_stage.set_defaults(func=cmd_stage)

    p_delete = sub.add_parser("delete-task", help="Delete a task's checkpoints in either layout")
    p_delete.add_argument("task_id")
    p_delete.add_argument("--workspace", help="Workspace the task's checkpoints were bound to")
    p_delete.set_defaults(func=cmd_delete_task)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
