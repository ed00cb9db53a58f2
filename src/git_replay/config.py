"""Configuration for a replay run."""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError

CONFIG_FILE_NAME = ".git-replay.json"


class ConfigError(ValueError):
    """The configuration file could not be loaded."""


class ReplayConfig(BaseModel):
    """Settings for one replay run."""

    email_domain: str = "localhost"
    cvs_executable: str = "cvs"
    dry_run: bool = False
    force: bool = False
    verbose: bool = False
    debug: bool = False

    model_config = {"extra": "forbid"}

    @classmethod
    def load(
        cls,
        config_file: Optional[Path] = None,
        destination_dir: Optional[Path] = None,
        **overrides: Any,
    ) -> "ReplayConfig":
        """Load settings from a JSON file, then apply explicit overrides.

        Without ``config_file`` the destination's ``.git-replay.json`` is used
        when it exists. Overrides that are ``None`` are ignored.
        """
        data: Dict[str, Any] = {}

        if config_file is None and destination_dir is not None:
            candidate = Path(destination_dir) / CONFIG_FILE_NAME
            if candidate.exists():
                config_file = candidate

        if config_file is not None:
            try:
                data = json.loads(Path(config_file).read_text())
            except (OSError, json.JSONDecodeError) as e:
                raise ConfigError(f"Cannot read config {config_file}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"Config {config_file} must be a JSON object")

        data.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
