import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from src.rules.models import Rules

logger = logging.getLogger(__name__)

PROJECT_RULES_PATH = Path(__file__).resolve().parents[2] / "rules.yaml"
RULES_PATH_ENV = "FORGE_RULES_PATH"

_FENCED_YAML_RE = re.compile(r"^\s*```ya?ml\s*$(.*?)^\s*```", re.MULTILINE | re.DOTALL)


def default_rules_path() -> Path:
    """Project rules.yaml unless FORGE_RULES_PATH points elsewhere."""
    override = os.environ.get(RULES_PATH_ENV)
    return Path(override) if override else PROJECT_RULES_PATH


def extract_yaml(content: str) -> str:
    """The first fenced yaml block of a markdown document, else the whole text."""
    match = _FENCED_YAML_RE.search(content)
    return match.group(1) if match else content


def load_rules(path: Path) -> Rules:
    """
    Load and validate the rules file.

    Raises FileNotFoundError when the file is missing and ValueError when
    the YAML does not parse or does not match the Rules schema.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    text = extract_yaml(path.read_text(encoding="utf-8"))
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    try:
        rules = Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e

    logger.debug("Loaded rules %s from %s", rules.project.rules_version, path)
    return rules
