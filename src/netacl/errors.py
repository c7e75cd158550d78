"""Exceptions raised while building and evaluating access control lists."""

from __future__ import annotations

from typing import Any, Sequence


class AclError(Exception):
    """Base class for every error raised by netacl."""


class NotationError(AclError, ValueError):
    """A rule notation could not be turned into a network range."""

    def __init__(self, notation: Any, message: str | None = None) -> None:
        self.notation = notation
        super().__init__(message or f"Invalid rule notation: {notation!r}")


class InvalidNotationError(NotationError):
    def __init__(self, notation: Any) -> None:
        super().__init__(
            notation,
            f"Invalid rule notation {notation!r}. "
            "Must be IPv4 value, CIDR, or Ip/Mask notation.",
        )


class MalformedMaskError(NotationError):
    def __init__(self, notation: Any, mask: str) -> None:
        self.mask = mask
        super().__init__(
            notation,
            f"Invalid rule notation {notation!r}: {mask} is not a contiguous subnet mask.",
        )


class AclBuildError(AclError):
    """One or more configured rules failed to parse.

    Carries every failure so the whole list can be fixed in one pass.
    """

    def __init__(self, errors: Sequence[NotationError]) -> None:
        self.errors = list(errors)
        count = len(self.errors)
        super().__init__(
            f"{count} invalid rule{'s' if count != 1 else ''}: "
            + ", ".join(repr(n) for n in self.notations)
        )

    @property
    def notations(self) -> list[Any]:
        return [e.notation for e in self.errors]


class EvaluationError(AclError, ValueError):
    """A candidate address is not a valid IPv4 literal."""

    def __init__(self, address: Any) -> None:
        self.address = address
        super().__init__(f"Not a valid IPv4 address: {address!r}")


class ConfigError(AclError):
    """The configuration document could not be loaded or resolved."""
