from __future__ import annotations

import os
from pathlib import Path

from umbra.shadow import NestedRepositorySuppressor


def _metadata_dirs(root: Path) -> set[str]:
    found = set()
    for current, dirnames, _ in os.walk(root):
        for name in dirnames:
            if name.startswith(".git"):
                found.add(str((Path(current) / name).relative_to(root)))
    return found


def _build(workspace: Path) -> None:
    (workspace / ".git").mkdir()
    (workspace / "vendor" / "lib" / ".git" / "objects").mkdir(parents=True)
    (workspace / "packages" / "a" / ".git").mkdir(parents=True)
    (workspace / "packages" / "worktree").mkdir(parents=True)
    (workspace / "packages" / "worktree" / ".git").write_text("gitdir: /elsewhere\n", encoding="utf-8")


def test_disable_then_enable_round_trips(workspace: Path) -> None:
    _build(workspace)
    before = _metadata_dirs(workspace)
    suppressor = NestedRepositorySuppressor(workspace)

    disabled = suppressor.suppress(disable=True)

    assert disabled.ok
    assert sorted(path.relative_to(workspace).as_posix() for path in disabled.renamed) == [
        "packages/a/.git_disabled",
        "vendor/lib/.git_disabled",
    ]
    assert (workspace / ".git").is_dir()
    assert (workspace / "packages" / "worktree" / ".git").is_file()
    assert not (workspace / "vendor" / "lib" / ".git").exists()

    enabled = suppressor.suppress(disable=False)

    assert enabled.ok and len(enabled.renamed) == 2
    assert _metadata_dirs(workspace) == before


def test_root_metadata_never_renamed(workspace: Path) -> None:
    (workspace / ".git").mkdir()
    (workspace / ".git_disabled").mkdir()

    suppressor = NestedRepositorySuppressor(workspace)

    assert suppressor.find(disable=True) == []
    assert suppressor.find(disable=False) == []


def test_rename_failures_do_not_stop_the_batch(workspace: Path, monkeypatch) -> None:
    _build(workspace)
    real_rename = os.rename

    def flaky_rename(src, dst):
        if "packages" in str(src):
            raise PermissionError("locked")
        real_rename(src, dst)

    monkeypatch.setattr("umbra.shadow.nested.os.rename", flaky_rename)

    report = NestedRepositorySuppressor(workspace).suppress(disable=True)

    assert not report.ok
    assert [path.relative_to(workspace).as_posix() for path in report.failed] == ["packages/a/.git"]
    assert (workspace / "vendor" / "lib" / ".git_disabled").is_dir()


def test_suppressed_context_restores_on_error(workspace: Path) -> None:
    _build(workspace)
    suppressor = NestedRepositorySuppressor(workspace)

    try:
        with suppressor.suppressed() as report:
            assert len(report.renamed) == 2
            raise RuntimeError("staging exploded")
    except RuntimeError:
        pass

    assert (workspace / "vendor" / "lib" / ".git").is_dir()
    assert (workspace / "packages" / "a" / ".git").is_dir()
