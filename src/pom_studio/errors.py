from __future__ import annotations


class PomStudioError(Exception):
    """Base class for errors raised by pom_studio."""


class NotFoundError(PomStudioError, KeyError):
    """A page, locator, test data entry or test case id is unknown."""

    def __init__(self, kind: str, ident: str) -> None:
        super().__init__(kind, ident)
        self.kind = kind
        self.ident = ident

    def __str__(self) -> str:
        return f"{self.kind} not found: {self.ident}"


class LLMOutputError(PomStudioError, ValueError):
    """Model reply did not contain a usable JSON object."""
