"""
Rule-Set Loader (``payroll_config.loader``).

Responsibility
--------------
Loads a rule-set YAML file and parses it into the typed
``payroll_config.schema`` dataclasses.  This is build/test tooling; the
single runtime entry point is ``payroll_config.get_active_rules()``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; required fields have no silent defaults.
* Money and rates are parsed to ``Decimal`` through ``str()``, so a YAML
  float never carries binary representation error into a table.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  rule-set identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid date or number  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import (
    BracketDef,
    ChargesDef,
    IncomeTaxDef,
    NoticeDef,
    PremiumDef,
    RuleSetScope,
    StatutoryRuleSet,
    TableDef,
    UnemploymentDef,
)

RULES_FILE = "rules.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """
    Parse a date from YAML (string or date object).

    Raises:
        ValueError: if ``value`` is not a valid date representation.
    """
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_decimal(value: Any, field_name: str) -> Decimal:
    """
    Parse a YAML scalar into a finite ``Decimal``.

    Raises:
        ValueError: if ``value`` is missing, boolean or not numeric.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"{field_name}: expected a number, got {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"{field_name}: cannot parse number from {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"{field_name}: must be finite, got {value!r}")
    return result


def _optional_decimal(value: Any, field_name: str) -> Decimal | None:
    return None if value is None else parse_decimal(value, field_name)


def parse_scope(data: dict[str, Any]) -> RuleSetScope:
    """Parse a RuleSetScope from a dict."""
    return RuleSetScope(
        jurisdiction=data["jurisdiction"],
        currency=data.get("currency", "BRL"),
        effective_from=parse_date(data["effective_from"]),
        effective_to=parse_date(data["effective_to"]) if data.get("effective_to") else None,
    )


def parse_table(data: dict[str, Any]) -> TableDef:
    """
    Parse a progressive table.

    Each bracket needs ``lower_bound`` and ``rate``; ``upper_bound``
    omitted or null means unbounded.
    """
    name = data["name"]
    brackets = tuple(
        BracketDef(
            lower_bound=parse_decimal(row["lower_bound"], f"{name}[{i}].lower_bound"),
            upper_bound=_optional_decimal(row.get("upper_bound"), f"{name}[{i}].upper_bound"),
            rate=parse_decimal(row["rate"], f"{name}[{i}].rate"),
            cumulative_deduction=parse_decimal(
                row.get("cumulative_deduction", 0), f"{name}[{i}].cumulative_deduction"
            ),
        )
        for i, row in enumerate(data["brackets"])
    )
    return TableDef(
        name=name,
        brackets=brackets,
        ceiling=_optional_decimal(data.get("ceiling"), f"{name}.ceiling"),
    )


def parse_income_tax(data: dict[str, Any]) -> IncomeTaxDef:
    """Parse the income-tax table and its base reductions."""
    return IncomeTaxDef(
        table=parse_table(data),
        per_dependent_deduction=parse_decimal(
            data["per_dependent_deduction"], "irrf.per_dependent_deduction"
        ),
        simplified_discount_rate=parse_decimal(
            data.get("simplified_discount_rate", 0), "irrf.simplified_discount_rate"
        ),
        simplified_discount_cap=_optional_decimal(
            data.get("simplified_discount_cap"), "irrf.simplified_discount_cap"
        ),
        mode=data.get("mode", "legal"),
    )


def parse_premiums(data: dict[str, Any]) -> PremiumDef:
    rates = data.get("insalubrity_rates", {})
    return PremiumDef(
        night_bonus_rate=parse_decimal(data["night_bonus_rate"], "premiums.night_bonus_rate"),
        night_hour_minutes=parse_decimal(
            data["night_hour_minutes"], "premiums.night_hour_minutes"
        ),
        hazard_rate=parse_decimal(data["hazard_rate"], "premiums.hazard_rate"),
        overtime_multiplier_50=parse_decimal(
            data.get("overtime_multiplier_50", "1.5"), "premiums.overtime_multiplier_50"
        ),
        overtime_multiplier_100=parse_decimal(
            data.get("overtime_multiplier_100", "2"), "premiums.overtime_multiplier_100"
        ),
        insalubrity_rates=tuple(
            (str(grade).lower(), parse_decimal(rate, f"premiums.insalubrity_rates.{grade}"))
            for grade, rate in sorted(rates.items())
        ),
    )


def parse_charges(data: dict[str, Any]) -> ChargesDef:
    return ChargesDef(
        fgts_rate=parse_decimal(data["fgts_rate"], "charges.fgts_rate"),
        employer_inss_rate=parse_decimal(
            data["employer_inss_rate"], "charges.employer_inss_rate"
        ),
        rat_rate=parse_decimal(data["rat_rate"], "charges.rat_rate"),
        third_party_rate=parse_decimal(data["third_party_rate"], "charges.third_party_rate"),
    )


def parse_rule_set(data: dict[str, Any]) -> StatutoryRuleSet:
    """
    Parse a complete ``StatutoryRuleSet`` from a loaded YAML dict.

    Postconditions:
        - The returned set carries ``compute_checksum(data)``.

    Raises:
        KeyError: if required keys are missing.
        ValueError: if a date or number cannot be parsed.
    """
    notice = data.get("notice", {})
    unemployment = data.get("unemployment", {})
    return StatutoryRuleSet(
        rule_set_id=data["rule_set_id"],
        version=int(data.get("version", 1)),
        scope=parse_scope(data["scope"]),
        minimum_wage=parse_decimal(data["minimum_wage"], "minimum_wage"),
        monthly_hours=parse_decimal(data.get("monthly_hours", 220), "monthly_hours"),
        inss=parse_table(data["inss"]),
        irrf=parse_income_tax(data["irrf"]),
        fgts_fine_rate=parse_decimal(data["fgts_fine_rate"], "fgts_fine_rate"),
        thirteenth_advance_rate=parse_decimal(
            data["thirteenth_advance_rate"], "thirteenth_advance_rate"
        ),
        premiums=parse_premiums(data["premiums"]),
        charges=parse_charges(data["charges"]),
        notice=NoticeDef(
            base_days=int(notice.get("base_days", 30)),
            days_per_year=int(notice.get("days_per_year", 3)),
            max_days=int(notice.get("max_days", 90)),
        ),
        unemployment=UnemploymentDef(
            min_tenure_months=int(unemployment.get("min_tenure_months", 12)),
            months_per_guide=int(unemployment.get("months_per_guide", 6)),
            max_guides=int(unemployment.get("max_guides", 5)),
        ),
        description=data.get("description", ""),
        checksum=compute_checksum(data),
    )


def load_rule_set(directory: Path) -> StatutoryRuleSet:
    """Load and parse ``<directory>/rules.yaml``."""
    return parse_rule_set(load_yaml_file(directory / RULES_FILE))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
