"""Shared fixtures: the packaged 2025 rules bundle and synthetic bundles."""

from pathlib import Path

import pytest
import yaml

from gytax.sdk import clear_rules_cache, load_tax_rules

PACKAGED_RULES = Path(__file__).parent.parent.parent / "gytax" / "tax_rules" / "2025.yaml"


@pytest.fixture
def rules():
    """The packaged 2025 bundle."""
    return load_tax_rules(2025)


@pytest.fixture
def rules_data():
    """Raw dict of the packaged 2025 bundle, for building variants."""
    with open(PACKAGED_RULES) as f:
        return yaml.safe_load(f)


@pytest.fixture
def rules_dir(tmp_path, monkeypatch):
    """Empty rules directory selected through GY_TAX_RULES_PATH."""
    directory = tmp_path / "tax_rules"
    directory.mkdir()
    monkeypatch.setenv("GY_TAX_RULES_PATH", str(directory))
    clear_rules_cache()
    yield directory
    clear_rules_cache()


@pytest.fixture
def write_rules(rules_dir):
    """Write a bundle dict as YYYY.yaml into the isolated rules directory."""
    def _write(year: int, data: dict) -> Path:
        path = rules_dir / f"{year}.yaml"
        path.write_text(yaml.safe_dump(data))
        return path
    return _write
