from typing import Iterable


class SizingError(ValueError):
    """Base class for every failure reported by the sizing engine"""


class InvalidInput(SizingError):
    """The request is malformed: negative counts, missing environments and
    similar problems detected before any arithmetic happens."""


class UnknownCatalogKey(SizingError):
    """A distribution, technology, role or tier has no catalog entry"""

    def __init__(self, kind: str, key: object, known: Iterable[object] = ()):
        self.kind = kind
        self.key = key
        self.known = sorted(str(k) for k in known)
        message = f"{kind}={key} does not exist."
        if self.known:
            message += f" Try {self.known}"
        super().__init__(message)


class ArithmeticDegeneracy(SizingError):
    """A calculation would divide by zero capacity or produce a non-finite
    number"""
