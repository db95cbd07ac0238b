"""YAML config loading with ``${VAR}`` substitution from a sibling ``.env``."""

import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import dotenv_values

logger = logging.getLogger("nim-bridge")

# Relative to the project root
DEFAULT_CONFIG_PATH = "configs/config_default.yaml"

ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def resolve_config_path(path: str) -> Path:
    if Path(path).is_absolute():
        return Path(path)
    return Path(__file__).parent.parent / path


def read_dotenv(config_path: Path) -> dict[str, str]:
    """Values from the ``.env`` next to ``config_path``; empty when absent.

    ``os.environ`` is left untouched.
    """
    env_file = config_path.with_name(".env")
    if not env_file.exists():
        return {}
    logger.info(f"Loading environment variables from {env_file}")
    return {k: v for k, v in dotenv_values(env_file).items() if v is not None}


def load_config(path: Optional[str] = None) -> dict:
    """Read the gateway YAML config and expand environment references.

    Args:
        path: Config file. Defaults to NIMBRIDGE_CONFIG, then
              configs/config_default.yaml in the project root.

    Raises:
        RuntimeError: If the config file does not exist.
    """
    config_path = resolve_config_path(
        path or os.getenv("NIMBRIDGE_CONFIG") or DEFAULT_CONFIG_PATH
    )
    if not config_path.exists():
        logger.error(f"Config file not found: {config_path}")
        raise RuntimeError(f"Config file not found: {config_path}")

    logger.info(f"Loading configuration from {config_path}")
    with config_path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    return expand_env_refs(data, read_dotenv(config_path))


def expand_env_refs(obj: Any, dotenv: Optional[Mapping[str, str]] = None) -> Any:
    """Replace ``${NAME}`` and ``$NAME`` in every string of a config tree.

    ``.env`` values win over ``os.environ``. A name set in neither becomes an
    empty string, so an unset ``${NIM_API_KEY}`` reads as "no key".
    """
    dotenv = dotenv or {}

    def lookup(match: re.Match) -> str:
        name = match.group(1) or match.group(2)
        value = dotenv.get(name, os.getenv(name))
        if value is None:
            logger.warning(f"Config references unset environment variable '{name}'")
            return ""
        return value

    if isinstance(obj, dict):
        return {key: expand_env_refs(value, dotenv) for key, value in obj.items()}
    if isinstance(obj, list):
        return [expand_env_refs(item, dotenv) for item in obj]
    if isinstance(obj, str):
        return ENV_VAR_PATTERN.sub(lookup, obj)
    return obj
