"""
Payroll Kernel

Shared foundation for the payroll calculation engines:
- Typed exceptions with machine-readable codes
- Structured JSON logging with context propagation
- Decimal value helpers with a pinned rounding policy
"""

__version__ = "0.1.0"
