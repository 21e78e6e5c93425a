from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from repo_merge.config import DEFAULT_EXCLUDE_DIRS, DEFAULT_EXCLUDE_FILES, DEFAULT_OUTPUT, TreeMode
from repo_merge.exceptions import ConfigError

if TYPE_CHECKING:
    from collections.abc import Mapping

ENV_FILE = find_dotenv(usecwd=True)
ENV_PREFIX = "REPO_MERGE_"

_LIST_FIELDS = ("exclude_dirs", "exclude_files", "include_extensions")


class Settings(BaseModel):
    """Options for a single repository merge."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    url: str = Field(..., description="Repository URL (https, ssh or local path).")
    exclude_dirs: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS),
        description="Directory basenames skipped during traversal.",
    )
    exclude_files: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_FILES),
        description="File basenames never merged.",
    )
    include_extensions: list[str] | None = Field(
        default=None,
        description="Extension allow-list; None means no restriction.",
    )
    output: Path = Field(default=Path(DEFAULT_OUTPUT), description="Output file.")
    tree_mode: TreeMode = Field(default=TreeMode.FILTERED, description="Tree Builder variant.")
    work_dir: Path = Field(default_factory=Path.cwd, description="Parent of the temporary clone.")
    depth: int | None = Field(default=None, description="Shallow clone depth.")
    log_file: str = Field(default="", description="Log file path.")

    @field_validator(*_LIST_FIELDS, mode="before")
    @classmethod
    def _split_comma_list(cls, value: Any) -> Any:  # noqa: ANN401
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @classmethod
    def from_sources(
        cls,
        overrides: Mapping[str, Any],
        *,
        config_file: str | Path | None = None,
        env_file: str | None = None,
    ) -> Settings:
        """Build settings from environment, options file and explicit overrides.

        Later sources win: `REPO_MERGE_*` environment values, then the YAML
        options file, then `overrides` (typically parsed command-line flags).
        Keys mapped to None in `overrides` are treated as not given.

        Args:
            overrides (Mapping[str, Any]): highest-precedence values
            config_file (str | Path | None): optional YAML options file
            env_file (str | None): .env file to read; defaults to the discovered `ENV_FILE`

        Returns:
            Settings: the merged settings
        """
        values: dict[str, Any] = {}
        values.update(env_overrides(ENV_FILE if env_file is None else env_file))
        if config_file:
            values.update(load_options_file(Path(config_file)))
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def env_overrides(env_file: str = "", environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Collect `REPO_MERGE_*` settings from a .env file and the process environment.

    The process environment takes precedence over the .env file. Variable
    names map to fields by stripping the prefix and lower-casing, so
    `REPO_MERGE_EXCLUDE_DIRS=node_modules,.git` sets `exclude_dirs`.

    Args:
        env_file (str): path to a .env file, or "" to skip it
        environ (Mapping[str, str] | None): environment mapping; defaults to `os.environ`

    Returns:
        dict[str, Any]: field values keyed by Settings field name
    """
    merged: dict[str, str | None] = {}
    if env_file:
        merged.update(dotenv_values(env_file))
    merged.update(os.environ if environ is None else environ)

    out: dict[str, Any] = {}
    for key, value in merged.items():
        if not key.startswith(ENV_PREFIX) or value is None:
            continue
        field = key.removeprefix(ENV_PREFIX).lower()
        if field in Settings.model_fields:
            out[field] = value
    return out


def load_options_file(path: Path) -> dict[str, Any]:
    """Load a YAML options file.

    Args:
        path (Path): the file to read; its top level must be a mapping of Settings fields

    Raises:
        ConfigError: if the file cannot be read, is not valid YAML or is not a mapping.

    Returns:
        dict[str, Any]: the options found in the file (empty for an empty file)
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(file=path, message=f"Cannot read options file: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(file=path, message=f"Invalid YAML in options file: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(file=path, message="Options file must contain a mapping.")
    return {str(k).replace("-", "_"): v for k, v in data.items()}
