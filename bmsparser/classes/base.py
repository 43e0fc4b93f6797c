"""
Base, generic classes supporting other more specialized classes.
"""
from abc import ABC, abstractmethod

__all__ = [
    "Validateable",
    "ChartDecodeError",
]


class Validateable(ABC):
    """An abstract base class for classes that require validation."""

    @abstractmethod
    def validate(self):
        """
        Perform validation on the object.

        :raises ValueError: if any of the input is invalid.
        """
        pass


class ChartDecodeError(ValueError):
    """
    Raised when a chart document is structurally malformed and cannot be decoded.

    :param message: Description of the problem.
    :param field: Dotted path of the offending field, if the error concerns a single field.
    """

    field: str | None

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        if field is not None:
            message = f"{field}: {message}"
        super().__init__(message)
