"""Typed failures raised by the computation core.

Every error derives from :class:`LabMathError`, which is itself a
``ValueError`` so callers that already guard numeric input with
``except ValueError`` keep working. Solvers never return a placeholder value
in place of one of these errors; rendering a failure (a dash, a warning
badge) is left to whoever displays the result.
"""

from __future__ import annotations

from typing import Optional


class LabMathError(ValueError):
    """Base class for all expected domain failures."""


class FormulaError(LabMathError):
    """Base class for chemical formula parsing failures."""

    def __init__(self, message: str, formula: str = ""):
        super().__init__(message)
        self.formula = formula


class InvalidFormulaSyntax(FormulaError):
    """The formula contains characters or token sequences outside the grammar."""

    def __init__(self, message: str, formula: str = "", position: Optional[int] = None):
        super().__init__(message, formula)
        self.position = position


class UnknownElement(FormulaError):
    def __init__(self, symbol: str, formula: str = ""):
        super().__init__(f"Unknown element: {symbol}", formula)
        self.symbol = symbol


class UnbalancedGroup(FormulaError):
    def __init__(self, formula: str = ""):
        super().__init__(f"Unbalanced parentheses/brackets in {formula!r}", formula)


class UnknownUnit(LabMathError):
    def __init__(self, unit: str, expected: str = "unit"):
        super().__init__(f"Unsupported {expected}: {unit!r}")
        self.unit = unit


class InvalidQuantity(LabMathError):
    """A quantity is non-finite or outside its physically meaningful range."""

    def __init__(self, name: str, value: object, requirement: str = "positive and finite"):
        super().__init__(f"{name} must be {requirement}, got {value!r}")
        self.name = name
        self.value = value


class MissingMolecularWeight(LabMathError):
    """Bridging molar and mass concentration domains needs a positive MW."""

    def __init__(self, mw: object = None):
        super().__init__(
            "Molecular weight is required to convert between molar and mass "
            f"concentrations (got {mw!r})"
        )
        self.mw = mw


class ImpossibleDilution(LabMathError):
    """The requested target cannot be reached by diluting the stock."""

    def __init__(self, message: str, stock_volume_l: Optional[float] = None):
        super().__init__(message)
        self.stock_volume_l = stock_volume_l


class IncompatibleMethod(LabMathError):
    """The conjugate system lacks the reagent forms a preparation method needs."""


class IncompatibleAdjuster(IncompatibleMethod):
    """The chosen titrant has no matching starting form on the conjugate system."""


class NameNotResolved(LabMathError):
    """The name-resolution service could not map a query to a compound."""

    def __init__(self, query: str, reason: str = ""):
        message = f"Could not resolve {query!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.query = query
        self.reason = reason
