"""Configuration management for Umbra."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_MAX_VERIFY_DELAY = 5.0


class SettingsLoadError(RuntimeError):
    """Raised when a settings file cannot be parsed or validated."""


class RepositoryDefaults(BaseModel):
    """Fixed values applied to every shadow repository."""

    model_config = ConfigDict(frozen=True)

    metadata_dirname: str = ".git"
    author_name: str = "Umbra Checkpoint"
    author_email: str = "checkpoint@umbra.invalid"
    gpg_sign: bool = False
    quote_path: bool = False
    precompose_unicode: bool = True
    branch_prefix: str = "task-"
    disabled_suffix: str = "_disabled"
    initial_branch: str = "main"
    initial_commit_message: str = "initial commit"

    def branch_name(self, task_id: str) -> str:
        return f"{self.branch_prefix}{task_id}"

    def path_settings(self) -> list[tuple[str, str]]:
        """Config entries re-applied before every staging pass."""

        return [
            ("core.quotePath", _git_bool(self.quote_path)),
            ("core.precomposeunicode", _git_bool(self.precompose_unicode)),
        ]

    def repository_config(self, workspace: Path | str) -> list[tuple[str, str]]:
        """Config entries written once when a shadow repository is created."""

        return [
            ("core.worktree", str(workspace)),
            ("commit.gpgSign", _git_bool(self.gpg_sign)),
            ("user.name", self.author_name),
            ("user.email", self.author_email),
            *self.path_settings(),
        ]


def _git_bool(value: bool) -> str:
    return "true" if value else "false"


REPOSITORY_DEFAULTS = RepositoryDefaults()


class UmbraSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    storage_root: Path = Field(
        default=Path("~/.umbra"), validation_alias="UMBRA_STORAGE_ROOT"
    )
    git_path: str | None = Field(default=None, validation_alias="UMBRA_GIT_PATH")
    log_level: str = Field(default="INFO", validation_alias="UMBRA_LOG_LEVEL")
    verify_attempts: int = Field(default=3, validation_alias="UMBRA_VERIFY_ATTEMPTS")
    verify_delay: float = Field(default=0.0, validation_alias="UMBRA_VERIFY_DELAY")
    strict_branch_verification: bool = Field(
        default=True, validation_alias="UMBRA_STRICT_BRANCH_VERIFICATION"
    )
    add_batch_size: int = Field(default=500, validation_alias="UMBRA_ADD_BATCH_SIZE")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "UMBRA_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("verify_attempts", "add_batch_size")
    @classmethod
    def _validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("value must be >= 1")
        return value

    @field_validator("verify_delay")
    @classmethod
    def _validate_verify_delay(cls, value: float) -> float:
        if value < 0 or value > _MAX_VERIFY_DELAY:
            raise ValueError(f"UMBRA_VERIFY_DELAY must be between 0 and {_MAX_VERIFY_DELAY} seconds")
        return value


def _normalize(settings: UmbraSettings) -> UmbraSettings:
    settings.storage_root = settings.storage_root.expanduser().resolve()
    return settings


@lru_cache(maxsize=1)
def get_settings() -> UmbraSettings:
    """Return cached settings instance."""

    return _normalize(UmbraSettings())


def load_settings(config_file: Path | None = None) -> UmbraSettings:
    """Build settings from a YAML file, falling back to the environment for missing keys."""

    if config_file is None:
        return _normalize(UmbraSettings())

    path = Path(config_file)
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise SettingsLoadError(f"Unable to read settings file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise SettingsLoadError(f"Failed to parse YAML in {path}: {exc}") from exc

    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise SettingsLoadError(f"Settings file {path} must contain a mapping")

    try:
        settings = UmbraSettings(**document)
    except ValidationError as exc:
        raise SettingsLoadError(f"Settings validation error in {path}: {exc}") from exc
    return _normalize(settings)


_RESERVED_RECORD_FIELDS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Appends the ``extra={...}`` context of a record as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        context = {key: value for key, value in vars(record).items() if key not in _RESERVED_RECORD_FIELDS}
        if not context:
            return text
        pairs = " ".join(f"{key}={value!r}" for key, value in sorted(context.items()))
        return f"{text} [{pairs}]"


def configure_logging(level: str) -> None:
    """Configure root logging for Umbra tooling."""

    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"))
    logging.basicConfig(level=getattr(logging, level, logging.INFO), handlers=[handler])


__all__ = [
    "ContextFormatter",
    "REPOSITORY_DEFAULTS",
    "RepositoryDefaults",
    "SettingsLoadError",
    "UmbraSettings",
    "configure_logging",
    "get_settings",
    "load_settings",
]
