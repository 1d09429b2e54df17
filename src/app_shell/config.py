import logging
import os
from pathlib import Path

from src.rules.models import Rules

logger = logging.getLogger(__name__)


class OpsConfigError(Exception):
    """Raised when the environment does not meet the ops rules."""


def validate_ops_rules(rules: Rules, data_dir: Path) -> None:
    """
    Validate operational requirements before startup.

    Raises OpsConfigError listing every missing requirement.
    """
    ops = rules.ops
    problems: list[str] = []

    if ops.data_dir_required:
        try:
            data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            problems.append(f"Data directory {data_dir} cannot be created: {e}")
        else:
            if not os.access(data_dir, os.W_OK):
                problems.append(f"Data directory {data_dir} is not writable")

    missing = [env_var for env_var in ops.required_env if env_var not in os.environ]
    if missing:
        problems.append(f"Missing required environment variables: {', '.join(missing)}")

    if problems:
        raise OpsConfigError("; ".join(problems))

    logger.info("Configuration validated (data dir %s)", data_dir)
