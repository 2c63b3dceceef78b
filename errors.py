"""gobreakcheck error types."""
from typing import Optional


class BreakCheckError(Exception):
    """Base error for everything that aborts a run."""


class RetrievalError(BreakCheckError):
    """A snapshot could not be listed or a file could not be read."""

    def __init__(self, message: str, diagnostic: str = "") -> None:
        text = f"{message}: {diagnostic.strip()}" if diagnostic.strip() else message
        super().__init__(text)
        self.diagnostic = diagnostic


class PackageNotFoundError(BreakCheckError):
    """The package directory does not exist in a snapshot."""

    def __init__(self, directory: str, ref: Optional[str] = None) -> None:
        where = f" at {ref}" if ref else ""
        super().__init__(f"Package directory not found{where}: {directory}")
        self.directory = directory
        self.ref = ref


class GoParseError(BreakCheckError):
    """Source could not be parsed."""

    def __init__(self, path: str, line: int, column: int, message: str) -> None:
        super().__init__(f"{path}:{line}:{column}: {message}")
        self.path = path
        self.line = line
        self.column = column


class UnsupportedExpressionError(BreakCheckError):
    """A type expression kind that the normalizer does not know about."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"Unsupported type expression: {kind}")
        self.kind = kind
