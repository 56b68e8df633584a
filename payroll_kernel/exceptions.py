"""
Typed Exception Hierarchy for the Payroll Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Payroll figures end up on payslips and termination settlements. A caller
that has to parse an error message to decide whether the input was wrong
or the statutory tables were wrong will eventually get it wrong. Every
error therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (field names, offending values, table names)

Example - RIGHT way:
    try:
        result = calculate_termination(request, rules)
    except InvalidInputError as e:
        return {"error": e.code, "field": e.field, "value": e.value}
    except ConfigurationError as e:
        alert_payroll_admin(e.table, e.reason)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PayrollKernelError (base)
    |
    +-- InvalidInputError
    |
    +-- ConfigurationError
        +-- RuleSetNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                  | When Raised
----------------------|------------------------------------------------------
INVALID_INPUT         | Negative salary, termination before hire, zero
                      | working days in a DSR period, negative percentage
CONFIGURATION_ERROR   | Bracket table empty, unordered, overlapping or with
                      | gaps; malformed statutory rule set
RULE_SET_NOT_FOUND    | No statutory rule set covers the jurisdiction/date

===============================================================================
RETRY SEMANTICS
===============================================================================

None. Engines are deterministic: the same input fails the same way every
time. Callers fix the input or the configuration; they never retry.
"""

from typing import Any


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


class InvalidInputError(PayrollKernelError):
    """Malformed or logically inconsistent engine input."""

    code: str = "INVALID_INPUT"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid input for '{field}' ({value!r}): {reason}")


class ConfigurationError(PayrollKernelError):
    """Statutory configuration (bracket table or rule set) is unusable."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, table: str, reason: str):
        self.table = table
        self.reason = reason
        super().__init__(f"Invalid configuration '{table}': {reason}")


class RuleSetNotFoundError(ConfigurationError):
    """No statutory rule set is effective for the requested scope and date."""

    code: str = "RULE_SET_NOT_FOUND"

    def __init__(self, jurisdiction: str, as_of: str):
        self.jurisdiction = jurisdiction
        self.as_of = as_of
        super().__init__(
            table=jurisdiction,
            reason=f"no statutory rule set effective on {as_of}",
        )
