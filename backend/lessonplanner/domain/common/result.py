"""Result<T> pattern: validators return this instead of raising for normal flow."""
from __future__ import annotations
from typing import TypeVar, Generic, Optional

from lessonplanner.core.errors import ValidationError

T = TypeVar("T")


class Result(Generic[T]):
    def __init__(self, is_success: bool, value: Optional[T] = None, error: Optional[str] = None):
        self.is_success = is_success
        self.value = value
        self.error = error

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(is_success=True, value=value)

    @classmethod
    def fail(cls, error: str) -> "Result[T]":
        return cls(is_success=False, error=error)

    def unwrap(self) -> T:
        """Return the value, or raise ValidationError carrying the failure reason."""
        if not self.is_success:
            raise ValidationError(self.error or "Validation failed")
        return self.value

    def __repr__(self) -> str:
        if self.is_success:
            return f"Result.ok({self.value!r})"
        return f"Result.fail({self.error!r})"
