"""Zone Scope Engine error handling.

Exception hierarchy and error codes for catalog loading and formula parsing.
"""

from typing import Any


class ErrorCode:
    """Error code constants."""

    # Catalog errors
    CATALOG_INVALID = "CATALOG_INVALID"
    CATALOG_EMPTY = "CATALOG_EMPTY"
    CATALOG_CYCLE = "CATALOG_CYCLE"
    UNKNOWN_RULE = "UNKNOWN_RULE"
    DUPLICATE_RULE = "DUPLICATE_RULE"

    # Formula errors
    FORMULA_SYNTAX = "FORMULA_SYNTAX"
    UNKNOWN_METRIC = "UNKNOWN_METRIC"
    UNKNOWN_FUNCTION = "UNKNOWN_FUNCTION"


class ScopeEngineError(Exception):
    """Base exception for scope engine errors.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a serializable dict."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


class CatalogError(ScopeEngineError):
    """The rule catalog is malformed."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: str = ErrorCode.CATALOG_INVALID,
    ) -> None:
        super().__init__(code=code, message=message, details=details)


class EmptyCatalogError(CatalogError):
    """The rule catalog holds no rules."""

    def __init__(self, message: str = "Rule catalog is empty") -> None:
        super().__init__(message, code=ErrorCode.CATALOG_EMPTY)


class UnknownRuleError(CatalogError):
    """A line-item code is not present in the catalog."""

    def __init__(self, code: str, referenced_by: str | None = None) -> None:
        message = f"Unknown line item code: {code}"
        if referenced_by:
            message = f"{referenced_by} references unknown line item code: {code}"
        super().__init__(
            message,
            details={"code": code, "referenced_by": referenced_by},
            code=ErrorCode.UNKNOWN_RULE,
        )
        self.rule_code = code
        self.referenced_by = referenced_by


class CatalogCycleError(CatalogError):
    """A cycle was found in the catalog's auto-add or replacement graph."""

    def __init__(self, cycle: list[str], message: str | None = None) -> None:
        super().__init__(
            message or f"Cycle detected in rule catalog: {' -> '.join(cycle)}",
            details={"cycle": cycle},
            code=ErrorCode.CATALOG_CYCLE,
        )
        self.cycle = cycle


class FormulaError(ScopeEngineError):
    """A quantity formula could not be parsed."""

    def __init__(
        self,
        message: str,
        formula: str,
        position: int | None = None,
        code: str = ErrorCode.FORMULA_SYNTAX,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            details={"formula": formula, "position": position},
        )
        self.formula = formula
        self.position = position
