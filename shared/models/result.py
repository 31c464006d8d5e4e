"""Result type returned at the search and tagging boundaries."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class StepResult(BaseModel, Generic[T]):
    """
    Outcome of a single pipeline step that must not abort the run.

    A failed step still carries a usable fallback value (e.g. an empty match list),
    so the caller can log the error and continue.
    """

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "StepResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str, value: T | None = None) -> "StepResult[T]":
        return cls(value=value, error=error)
