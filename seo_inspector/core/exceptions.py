"""Exceptions raised to callers of the inspection engine."""


class InspectorError(Exception):
    """Base class for all caller-facing errors."""


class InvalidTargetError(InspectorError, ValueError):
    """The target URL cannot be analyzed. Raised before any network I/O."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid target URL {url!r}: {reason}")


class UnknownCategoryError(InspectorError, KeyError):
    """An analyzer category was requested that is not registered."""

    def __init__(self, category: str):
        self.category = category
        super().__init__(category)

    def __str__(self) -> str:
        return f"Unknown analyzer category: {self.category}"
