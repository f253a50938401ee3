"""Configuration management for gy-tax.

Tax policy lives in per-year YAML bundles (tax_rules/YYYY.yaml). Each bundle
holds every bracket, rate, threshold, penalty and interest parameter plus the
compliance requirement catalogue for that year.

Rules directory resolution:
1. GY_TAX_RULES_PATH environment variable (if set)
2. tax_rules/ directory shipped inside the gytax package

Bundles are validated into frozen TaxRules models and cached per year, so a
calculator never reads files itself; callers load once and pass the rules in.

Log level is taken from the LOG_LEVEL environment variable (default INFO).
"""

import logging
import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import ValidationError

from .errors import PolicyConfigError, TaxRulesNotFoundError
from .taxes.brackets import validate_brackets
from .taxes.schemas import TaxRules


APP_NAME = "gy-tax"
RULES_ENV_VAR = "GY_TAX_RULES_PATH"

# Configure logging based on LOG_LEVEL environment variable
_log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, _log_level, logging.INFO),
    format="%(asctime)s.%(msecs)03d %(levelname)s: %(message)s",
    datefmt="%H:%M:%S"
)
logger = logging.getLogger(__name__)


def get_tax_rules_dir() -> Path:
    """Get the tax rules directory path.

    Resolution order:
    1. GY_TAX_RULES_PATH environment variable
    2. Packaged gytax/tax_rules/

    Returns:
        Path to the directory holding YYYY.yaml bundles
    """
    env_path = os.environ.get(RULES_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path(__file__).parent.parent / "tax_rules"


def get_available_years() -> list[int]:
    """Get sorted list of available tax rule years (descending)."""
    rules_dir = get_tax_rules_dir()
    years = [int(p.stem) for p in rules_dir.glob("*.yaml") if p.stem.isdigit()]
    return sorted(years, reverse=True)


def load_tax_rules(year: int) -> TaxRules:
    """Load and validate the policy bundle for a tax year.

    Args:
        year: Tax year (e.g., 2025)

    Returns:
        Frozen TaxRules instance

    Raises:
        TaxRulesNotFoundError: If no bundle exists for the year
        PolicyConfigError: If the bundle fails validation
    """
    return _load_tax_rules(get_tax_rules_dir(), int(year))


@lru_cache(maxsize=None)
def _load_tax_rules(rules_dir: Path, year: int) -> TaxRules:
    config_file = rules_dir / f"{year}.yaml"
    if not config_file.exists():
        raise TaxRulesNotFoundError(f"Tax rules file not found for year {year}: {config_file}")

    logger.debug(f"Loading tax rules from {config_file}")
    with open(config_file, "r") as f:
        raw = yaml.safe_load(f) or {}

    try:
        rules = TaxRules.model_validate(raw)
    except ValidationError as e:
        raise PolicyConfigError(f"Invalid tax rules in {config_file}:\n{e}") from e

    if rules.tax_year != year:
        raise PolicyConfigError(
            f"{config_file} declares tax_year {rules.tax_year}, expected {year}"
        )
    _check_brackets(rules, config_file)
    return rules


def _check_brackets(rules: TaxRules, config_file: Path) -> None:
    try:
        validate_brackets(rules.paye.brackets)
    except PolicyConfigError as e:
        raise PolicyConfigError(f"{config_file}: paye.tax_brackets: {e}") from e


def clear_rules_cache() -> None:
    """Drop cached bundles (used after GY_TAX_RULES_PATH changes)."""
    _load_tax_rules.cache_clear()
