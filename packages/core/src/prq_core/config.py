import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG_PATH = ".prq.yml"

PROVIDERS = ("claude-cli", "anthropic", "openai", "fixture")

DEFAULT_CONFIG: dict = {
    "provider": "claude-cli",
    "provider_command": "claude",
    "provider_args": [],
    "model": None,  # None = the provider's own default model
    "user_rules": [],
    "repo_rules": [],
    "redaction": True,
    "diff_ignore": [],  # fnmatch patterns or directory names left out of the prompt (e.g. "vendor/", "*.lock")
    "diff_max_files": 50,
    "diff_max_chunk_chars": 8000,
    "queue_limit": 200,
    "db_path": "~/.prq/prq.db",
    "timeout": 120,  # seconds, applied to every GitHub request and every AI call
    "fixtures_dir": None,  # set to a directory of recorded GitHub responses to run offline
    "provider_fixture": None,
    "prompt_path": None,  # None = built-in template
    "schema_path": None,  # None = built-in review plan schema
}

_LIST_KEYS = ("provider_args", "user_rules", "repo_rules", "diff_ignore")


class ConfigError(ValueError):
    pass


def load_config(config_path: Optional[str] = None, cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. The YAML file (``.prq.yml`` in the current directory unless given)
      3. CLI argument overrides

    A missing default file is fine; a missing explicitly named file is not.
    """
    config = {key: list(value) if isinstance(value, list) else value for key, value in DEFAULT_CONFIG.items()}

    path = Path(config_path or DEFAULT_CONFIG_PATH)
    if path.exists():
        with open(path) as f:
            try:
                file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"{path} must contain a mapping of settings")
        config.update(file_config)
    elif config_path:
        raise ConfigError(f"Config file not found: {config_path}")

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    _validate(config)

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

    return config


def _validate(config: dict) -> None:
    if config["provider"] not in PROVIDERS:
        raise ConfigError(f"Unknown provider {config['provider']!r}; expected one of: {', '.join(PROVIDERS)}")
    for key in _LIST_KEYS:
        value = config.get(key)
        if value is None:
            config[key] = []
        elif isinstance(value, str):
            config[key] = [value]
        elif not isinstance(value, list):
            raise ConfigError(f"{key} must be a list")
    for key in ("diff_max_files", "diff_max_chunk_chars", "queue_limit", "timeout"):
        value = config.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigError(f"{key} must be a positive number, got {value!r}")
