"""Locate, read and validate the ai-services YAML config."""

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import AIServicesConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG = Path("ai-services.yaml")

# ${VAR} or ${VAR:-fallback}
_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def user_config_path() -> Path:
    return Path.home() / ".ai-services" / "config.yaml"


def config_search_paths(cli_path: str | None = None) -> list[Path]:
    """Candidate files in priority order: --config, project file, user file.

    An explicit ``cli_path`` must exist.
    """
    paths = []
    if cli_path:
        explicit = Path(cli_path)
        if not explicit.is_file():
            raise ValueError(f"Config file not found: {explicit}")
        paths.append(explicit)
    paths.extend([PROJECT_CONFIG, user_config_path()])
    return paths


def load_config(cli_path: str | None = None) -> AIServicesConfig:
    """Return the first non-empty config file found, or the defaults."""
    for path in config_search_paths(cli_path):
        if not path.is_file():
            continue
        raw = _read_yaml(path)
        if raw is None:
            logger.debug("Skipping empty config file %s", path)
            continue
        try:
            config = AIServicesConfig.model_validate(_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
        logger.debug("Loaded config from %s", path)
        return config

    return AIServicesConfig()


def _read_yaml(path: Path) -> dict | None:
    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is not None and not isinstance(raw, dict):
        raise ValueError(
            f"Invalid config in {path}: expected a mapping, got {type(raw).__name__}"
        )
    return raw


def _expand_env_vars(obj: object) -> object:
    """Expand ${VAR} and ${VAR:-fallback} in every string of a loaded YAML tree.

    Unset variables without a fallback expand to an empty string.
    """
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1)) or (m.group(2) or ""), obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `ai-services config init`
DEFAULT_CONFIG_TEMPLATE = """\
# ai-services.yaml

# Providers: the API key is read from the named environment variable
services:
  google:
    api_key_env: "GOOGLE_API_KEY"
    default_model: "gemini-2.0-flash"
    timeout: 60
    max_retries: 2
  openai:
    api_key_env: "OPENAI_API_KEY"
    default_model: "gpt-4o"
    # base_url: "https://api.openai.com/v1"
  anthropic:
    api_key_env: "ANTHROPIC_API_KEY"
    default_model: "claude-haiku-4-5-20251001"

# Model list cache
cache:
  enabled: true
  ttl_seconds: 3600
  max_size: 128

# Remote services endpoint used by the client datastore
store:
  base_url: "http://localhost:8080"
  timeout: 30

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
