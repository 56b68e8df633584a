"""Fixtures for rule-set configuration tests."""

import copy
from pathlib import Path

import pytest
import yaml

from payroll_config.loader import RULES_FILE, load_yaml_file

SETS_DIR = Path(__file__).resolve().parents[2] / "payroll_config" / "sets"


@pytest.fixture
def rules_2024_data() -> dict:
    """A fresh, mutable copy of the shipped 2024 rule-set document."""
    return copy.deepcopy(load_yaml_file(SETS_DIR / "br_2024" / RULES_FILE))


@pytest.fixture
def write_rule_set(tmp_path):
    """Write a rule-set document as ``<tmp>/sets/<name>/rules.yaml``."""
    sets_dir = tmp_path / "sets"

    def _write(name: str, data: dict) -> Path:
        directory = sets_dir / name
        directory.mkdir(parents=True, exist_ok=True)
        with open(directory / RULES_FILE, "w") as f:
            yaml.safe_dump(data, f, sort_keys=False)
        return sets_dir

    return _write
