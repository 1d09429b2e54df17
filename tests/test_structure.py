"""
Structure lint tests.
Verify the atomic component layout and the files the app needs at startup.
"""

from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent

COMPONENTS = ["auth", "cta", "media", "posts", "site", "taxonomy"]


class TestProjectStructure:
    def test_layer_directories_exist(self) -> None:
        for layer in ["adapters", "api", "app_shell", "components", "domain", "rules"]:
            assert (PROJECT_ROOT / "src" / layer).is_dir(), f"Missing src/{layer}"

    def test_components_follow_the_atomic_layout(self) -> None:
        """Each component exposes models, ports and a component module."""
        for name in COMPONENTS:
            base = PROJECT_ROOT / "src" / "components" / name
            for module in ["__init__.py", "models.py", "ports.py", "component.py"]:
                assert (base / module).is_file(), f"{name} is missing {module}"
            assert (base / "tests" / "test_unit.py").is_file(), f"{name} has no unit tests"

    def test_no_undeclared_components(self) -> None:
        found = {
            p.name
            for p in (PROJECT_ROOT / "src" / "components").iterdir()
            if p.is_dir() and not p.name.startswith("__")
        }
        assert found == set(COMPONENTS)

    def test_runtime_files_exist(self) -> None:
        assert (PROJECT_ROOT / "rules.yaml").is_file()
        assert (PROJECT_ROOT / "migrations" / "0001_init.sql").is_file()
        assert (PROJECT_ROOT / "static" / "cta-tracker.js").is_file()

    def test_tests_structure_exists(self) -> None:
        assert (PROJECT_ROOT / "tests" / "unit").is_dir()
        assert (PROJECT_ROOT / "tests" / "integration").is_dir()
