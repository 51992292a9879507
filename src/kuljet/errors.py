"""
Runtime exceptions and diagnostics for the Kuljet interpreter.

Error code ranges:
- E4xx: Contract violations (states the type checker should have excluded)
- E5xx: Evaluation faults the type checker cannot exclude
- E6xx: User input errors
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    FATAL = "fatal"
    ERROR = "error"
    USER = "user"


@dataclass
class Diagnostic:
    """A single diagnostic message attached to a runtime error."""
    code: str                       # E401, E501, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    hints: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)

    def format(self) -> str:
        """Format the diagnostic for display."""
        parts = [f"{self.severity.value}[{self.code}]: {self.message}"]
        for hint in self.hints:
            parts.append(f"    = hint: {hint}")
        return "\n".join(parts)


class KuljetError(Exception):
    """Base exception for runtime errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def code(self) -> str:
        return self.diagnostic.code

    def __str__(self) -> str:
        return self.diagnostic.format()


class ContractViolation(KuljetError):
    """A state the type checker should have made impossible (E4xx).

    Always fatal for the current request.
    """
    pass


class RowDecodeError(ContractViolation):
    """A stored value that cannot be decoded into a runtime value (E406)."""
    pass


class EvaluationError(KuljetError):
    """A runtime fault that is not a checker bug (E5xx)."""
    pass


class FormInputError(KuljetError):
    """Submitted form data does not match the endpoint's record type (E6xx)."""

    def __init__(self, diagnostic: Diagnostic, field_name: str):
        self.field_name = field_name
        super().__init__(diagnostic)


# --- Contract violations ---

def _violation(code: str, message: str, **details: Any) -> Diagnostic:
    return Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.FATAL,
        hints=["the type checker has failed - this is a bug"],
        details=details,
    )


def error_unbound_identifier(name: str) -> ContractViolation:
    """E401: Identifier not bound in the environment."""
    return ContractViolation(_violation("E401", f"unbound identifier '{name}'", name=name))


def error_wrong_kind(expected: str, found: Any, where: str) -> ContractViolation:
    """E402: Value of the wrong kind at an operator, field access or emission site."""
    kind = getattr(found, "kind", type(found).__name__)
    return ContractViolation(_violation(
        "E402",
        f"{where}: expected {expected}, found {kind}",
        expected=expected,
        found=kind,
    ))


def error_missing_field(name: str) -> ContractViolation:
    """E403: Field access on a record without that field."""
    return ContractViolation(_violation("E403", f"record has no field '{name}'", field=name))


def error_not_applicable(found: Any) -> ContractViolation:
    """E404: Application of a value that is not a function or tag."""
    kind = getattr(found, "kind", type(found).__name__)
    return ContractViolation(_violation("E404", f"cannot apply a value of kind {kind}", found=kind))


def error_unsafe_identifier(name: str) -> ContractViolation:
    """E405: Table or column name that cannot be written into SQL text."""
    return ContractViolation(_violation("E405", f"unsafe SQL identifier {name!r}", name=name))


def error_row_decode(column: str, stored: Any, expected: Optional[str] = None) -> RowDecodeError:
    """E406: Stored value kind not supported for the column."""
    stored_kind = type(stored).__name__
    if expected is None:
        message = f"cannot decode column '{column}': unsupported stored kind {stored_kind}"
    else:
        message = (f"cannot decode column '{column}': expected {expected}, "
                   f"found stored kind {stored_kind}")
    return RowDecodeError(_violation("E406", message, column=column, stored=stored_kind))


# --- Evaluation faults ---

def error_division_by_zero() -> EvaluationError:
    """E501: Integer division by zero."""
    diag = Diagnostic(
        code="E501",
        message="integer division by zero",
        severity=ErrorSeverity.ERROR,
    )
    return EvaluationError(diag)


# --- User input errors ---

def error_missing_form_field(name: str) -> FormInputError:
    """E601: Required form field absent from a POST body."""
    diag = Diagnostic(
        code="E601",
        message=f"missing '{name}'",
        severity=ErrorSeverity.USER,
        details={"field": name},
    )
    return FormInputError(diag, name)
