from __future__ import annotations

import logging
import textwrap
from pathlib import Path

import pytest
from pydantic import ValidationError

from umbra.config import REPOSITORY_DEFAULTS, ContextFormatter, SettingsLoadError, UmbraSettings, load_settings


def test_settings_read_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("UMBRA_STORAGE_ROOT", str(tmp_path))
    monkeypatch.setenv("UMBRA_LOG_LEVEL", " debug ")
    monkeypatch.setenv("UMBRA_STRICT_BRANCH_VERIFICATION", "false")

    settings = UmbraSettings()

    assert settings.storage_root == tmp_path
    assert settings.log_level == "DEBUG"
    assert settings.strict_branch_verification is False
    assert settings.verify_attempts == 3


def test_settings_reject_invalid_values() -> None:
    with pytest.raises(ValidationError):
        UmbraSettings(log_level="chatty")
    with pytest.raises(ValidationError):
        UmbraSettings(verify_attempts=0)
    with pytest.raises(ValidationError):
        UmbraSettings(verify_delay=60)


def test_load_settings_from_yaml(tmp_path: Path) -> None:
    config_file = tmp_path / "umbra.yaml"
    config_file.write_text(
        textwrap.dedent(
            f"""
            storage_root: {tmp_path / 'store'}
            verify_attempts: 5
            add_batch_size: 50
            """
        ),
        encoding="utf-8",
    )

    settings = load_settings(config_file)

    assert settings.storage_root == (tmp_path / "store").resolve()
    assert settings.verify_attempts == 5
    assert settings.add_batch_size == 50


def test_load_settings_reports_bad_documents(tmp_path: Path) -> None:
    broken = tmp_path / "broken.yaml"
    broken.write_text("verify_attempts: [unclosed", encoding="utf-8")
    invalid = tmp_path / "invalid.yaml"
    invalid.write_text("verify_attempts: -1\n", encoding="utf-8")
    not_mapping = tmp_path / "list.yaml"
    not_mapping.write_text("- a\n- b\n", encoding="utf-8")

    for path in (broken, invalid, not_mapping, tmp_path / "missing.yaml"):
        with pytest.raises(SettingsLoadError):
            load_settings(path)


def test_repository_defaults_config_set() -> None:
    entries = dict(REPOSITORY_DEFAULTS.repository_config("/work/space"))

    assert entries == {
        "core.worktree": "/work/space",
        "commit.gpgSign": "false",
        "user.name": "Umbra Checkpoint",
        "user.email": "checkpoint@umbra.invalid",
        "core.quotePath": "false",
        "core.precomposeunicode": "true",
    }
    assert REPOSITORY_DEFAULTS.branch_name("t1") == "task-t1"


def test_repository_defaults_are_frozen() -> None:
    with pytest.raises(ValidationError):
        REPOSITORY_DEFAULTS.branch_prefix = "other-"


def test_context_formatter_renders_extra_fields() -> None:
    formatter = ContextFormatter("%(levelname)s %(message)s")
    record = logging.LogRecord("umbra.shadow", logging.ERROR, __file__, 1, "Checkpoint branch mismatch", (), None)
    record.expected = "task-t1"
    record.actual = "main"

    assert formatter.format(record) == "ERROR Checkpoint branch mismatch [actual='main' expected='task-t1']"


def test_context_formatter_leaves_plain_records_alone() -> None:
    formatter = ContextFormatter("%(message)s")
    record = logging.LogRecord("umbra", logging.INFO, __file__, 1, "No files to add", (), None)

    assert formatter.format(record) == "No files to add"
