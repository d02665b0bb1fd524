"""Exception types raised by the reachflux engine."""

from typing import Iterable, List, Optional, Sequence


class ReachfluxError(Exception):
    """Base class for engine errors."""


class ConfigurationError(ReachfluxError, ValueError):
    """Input tables are malformed or reference entities that do not exist."""

    def __init__(self, problems: Iterable[str]):
        self.problems: List[str] = [str(p) for p in problems]
        if len(self.problems) == 1:
            message = self.problems[0]
        else:
            message = f"{len(self.problems)} configuration problems:\n" + "\n".join(
                f"  - {p}" for p in self.problems
            )
        super().__init__(message)


class NumericDomainError(ReachfluxError, ValueError):
    """A parameter lies outside the domain where the closed forms are valid."""

    def __init__(self, parameter: str, value: object, reason: str, boundary: Optional[int] = None):
        self.parameter = parameter
        self.reason = reason
        self.value = value
        self.boundary = boundary
        self.errors: List[NumericDomainError] = [self]
        where = f"reaction boundary {boundary}: " if boundary is not None else ""
        super().__init__(f"{where}{parameter}={value!r} {reason}")

    @classmethod
    def collected(cls, errors: Sequence["NumericDomainError"]) -> "NumericDomainError":
        """One error reporting every violation; attributes follow the first."""
        first = errors[0]
        combined = cls(first.parameter, first.value, first.reason, first.boundary)
        combined.errors = list(errors)
        combined.args = (
            f"{len(errors)} numeric domain problems:\n" + "\n".join(f"  - {e}" for e in errors),
        )
        return combined


class NegativeMassError(ReachfluxError, ArithmeticError):
    """A delta would leave a cell with a negative amount."""

    def __init__(
        self,
        cell_index: int,
        amount: float,
        delta: float,
        boundary: Optional[int] = None,
        reason: str = "",
    ):
        self.cell_index = cell_index
        self.amount = amount
        self.delta = delta
        self.boundary = boundary
        where = f"boundary {boundary} -> " if boundary is not None else ""
        message = f"{where}cell {cell_index}: delta {delta:.6g} exceeds available amount {amount:.6g}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class IterationFault(ReachfluxError, RuntimeError):
    """Unexpected failure inside Model.iterate(); the model was rolled back."""

    def __init__(self, message: str, iteration: Optional[int] = None):
        self.iteration = iteration
        super().__init__(message)
