"""Rules loading and validation."""

from pathlib import Path

import pytest

from src.rules.loader import PROJECT_RULES_PATH, default_rules_path, extract_yaml, load_rules

PROJECT_ROOT = Path(__file__).resolve().parents[2]
RULES_PATH = PROJECT_ROOT / "rules.yaml"


def test_project_rules_load():
    rules = load_rules(RULES_PATH)
    assert rules.auth.key_prefix == "fk_"
    assert rules.auth.timestamp_tolerance_seconds == 300
    assert rules.api.namespace == "forge/v1"
    assert rules.content.post_types["page"].hierarchical is True
    assert rules.content.image_sizes["thumbnail"].crop is True
    assert rules.cta.cache_ttl_seconds == 300


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_rules(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("project: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid YAML"):
        load_rules(path)


def test_schema_violation(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("project:\n  slug: x\n")
    with pytest.raises(ValueError, match="Rules validation failed"):
        load_rules(path)


def test_fenced_block_in_markdown(tmp_path):
    path = tmp_path / "RULES.md"
    path.write_text("# Rules\n\nSome notes.\n\n```yaml\n" + RULES_PATH.read_text() + "\n```\n")
    rules = load_rules(path)
    assert rules.project.slug == load_rules(RULES_PATH).project.slug


def test_default_rules_path_env_override(monkeypatch, tmp_path):
    monkeypatch.delenv("FORGE_RULES_PATH", raising=False)
    assert default_rules_path() == PROJECT_RULES_PATH == RULES_PATH

    monkeypatch.setenv("FORGE_RULES_PATH", str(tmp_path / "custom.yaml"))
    assert default_rules_path() == tmp_path / "custom.yaml"


def test_extract_yaml_without_fence():
    assert extract_yaml("a: 1\n") == "a: 1\n"


def test_extract_yaml_takes_first_block():
    text = "intro\n```yaml\na: 1\n```\n\n```yaml\nb: 2\n```\n"
    assert extract_yaml(text).strip() == "a: 1"
