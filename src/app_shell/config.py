import logging
import os
from pathlib import Path

from src.rules.models import Rules

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Operational configuration is unusable; the process should not start."""


def validate_ops_rules(rules: Rules, data_dir: Path) -> None:
    """
    Validate operational requirements before startup.

    Raises ConfigError if a required environment variable is missing or
    the data directory cannot be created.
    """
    missing = [name for name in rules.ops.required_env if name not in os.environ]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    try:
        data_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"Data directory {data_dir} is not writable: {e}") from e

    logger.info("Configuration validated (rules %s)", rules.project.rules_version)
