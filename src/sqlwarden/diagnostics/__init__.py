"""Diagnostic system: codes, types and rendering.

Error translation lives in ``sqlwarden.diagnostics.translate``; it depends on
the policy and adapter layers and is not re-exported here.
"""

from sqlwarden.diagnostics import codes
from sqlwarden.diagnostics.codes import DiagnosticCode
from sqlwarden.diagnostics.types import Diagnostic, ErrorCategory, Level

__all__ = [
    "Diagnostic",
    "DiagnosticCode",
    "ErrorCategory",
    "Level",
    "codes",
]
