"""
payroll_config -- single public entrypoint for statutory payroll rules.

Responsibility:
    Provides the ONLY way to obtain legal constants at runtime through
    ``get_active_rules()``.  Engines never read files or hold a year's
    tables; the caller resolves the effective rule set once and passes
    the translated parameters (see ``payroll_config.bridges``) into every
    engine call.

Architecture position:
    Configuration -- YAML rule sets, validated before use.
    This package sits above ``payroll_kernel`` and ``payroll_engines``.
    Neither may import from ``payroll_config``.

Invariants enforced:
    - Single entrypoint: all runtime rules flow through ``get_active_rules()``.
    - Effective dating: a rule set is returned only when its scope covers
      the requested jurisdiction and date.
    - Validation: a rule set with errors is never returned.
    - Deterministic identity: the same YAML always yields the same checksum.

Failure modes:
    - ``RuleSetNotFoundError`` -- no rule set covers the jurisdiction/date.
    - ``ConfigurationError`` -- the matching rule set fails validation.
    - ``yaml.YAMLError`` -- a rules file is not YAML.
    - ``KeyError`` / ``ValueError`` -- malformed scope in any set, or a
      malformed body in the matching set.

Audit relevance:
    Every successful ``get_active_rules()`` call emits a
    ``PAYROLL_CONFIG_TRACE`` log entry with the rule_set_id, version,
    checksum and effective range.  This trace ties every settlement back
    to the exact legal constants that produced it.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from payroll_config.loader import RULES_FILE, load_yaml_file, parse_rule_set, parse_scope
from payroll_config.schema import RuleSetScope, StatutoryRuleSet
from payroll_config.validator import ValidationResult, validate_rule_set
from payroll_kernel.exceptions import ConfigurationError, RuleSetNotFoundError
from payroll_kernel.logging_config import LogContext

_logger = logging.getLogger("payroll_kernel.config")

# Default rule sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

__all__ = [
    "StatutoryRuleSet",
    "ValidationResult",
    "get_active_rules",
    "validate_rule_set",
]


def get_active_rules(
    jurisdiction: str,
    as_of_date: date,
    config_dir: Path | None = None,
) -> StatutoryRuleSet:
    """The ONLY public configuration entrypoint.

    Guarantees:
        - The returned ``StatutoryRuleSet`` covers ``as_of_date`` for
          ``jurisdiction`` and has passed validation.
        - A ``PAYROLL_CONFIG_TRACE`` log entry is emitted on every
          successful call.
        - ``rule_set_id`` and ``jurisdiction`` are bound in ``LogContext``
          while the set is validated and traced.

    Non-goals:
        - Rule sets are not cached across calls; callers hold the
          returned set for the duration of a payroll run.

    Args:
        jurisdiction: Jurisdiction code for scope matching (e.g. "BR").
        as_of_date: Date for effective-date filtering.
        config_dir: Override path to the rule sets directory.
            Defaults to payroll_config/sets/.

    Raises:
        RuleSetNotFoundError: If no rule set covers the request.
        ConfigurationError: If the matching rule set is invalid.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    rule_set = _find_matching_rule_set(sets_dir, jurisdiction, as_of_date)

    with LogContext.bind(
        rule_set_id=rule_set.rule_set_id, jurisdiction=rule_set.scope.jurisdiction
    ):
        validation = validate_rule_set(rule_set)
        if not validation.is_valid:
            _logger.error("rule_set_rejected", extra={"errors": validation.errors})
            raise ConfigurationError(
                rule_set.rule_set_id,
                "validation failed:\n" + "\n".join(f"  - {e}" for e in validation.errors),
            )
        for warning in validation.warnings:
            _logger.warning("rule_set_warning", extra={"warning": warning})

        _logger.info(
            "PAYROLL_CONFIG_TRACE",
            extra={
                "trace_type": "PAYROLL_CONFIG_TRACE",
                "rule_set_id": rule_set.rule_set_id,
                "rule_set_version": rule_set.version,
                "checksum": rule_set.checksum,
                "jurisdiction": rule_set.scope.jurisdiction,
                "effective_from": rule_set.scope.effective_from.isoformat(),
                "effective_to": (
                    rule_set.scope.effective_to.isoformat()
                    if rule_set.scope.effective_to
                    else None
                ),
                "as_of_date": as_of_date.isoformat(),
            },
        )

    return rule_set


def _find_matching_rule_set(
    sets_dir: Path, jurisdiction: str, as_of_date: date
) -> StatutoryRuleSet:
    """Find the rule set for a jurisdiction and date.

    Scans every subdirectory of *sets_dir* holding a ``rules.yaml``.  Only
    the ``scope`` block of each file is parsed during the scan, so a
    malformed table in a set for another year or jurisdiction does not
    affect this lookup; the winning set alone is parsed in full.  When
    several sets match, the latest ``effective_from`` wins, then the
    highest version.

    Raises:
        RuleSetNotFoundError: If *sets_dir* does not exist or nothing matches.
        yaml.YAMLError: If a ``rules.yaml`` is not YAML at all, since its
            scope cannot be read.
    """
    if not sets_dir.is_dir():
        raise RuleSetNotFoundError(jurisdiction, as_of_date.isoformat())

    candidates: list[tuple[RuleSetScope, int, dict]] = []
    for subdir in sorted(sets_dir.iterdir()):
        rules_path = subdir / RULES_FILE
        if not (subdir.is_dir() and rules_path.exists()):
            continue
        data = load_yaml_file(rules_path)
        scope = parse_scope(data["scope"])
        if scope.jurisdiction == jurisdiction and scope.covers(as_of_date):
            candidates.append((scope, int(data.get("version", 1)), data))

    if not candidates:
        raise RuleSetNotFoundError(jurisdiction, as_of_date.isoformat())

    _, _, data = max(candidates, key=lambda c: (c[0].effective_from, c[1]))
    return parse_rule_set(data)
