"""
Tagged outcome of one saga step.

Each step reports how it ended instead of raising; the saga reads the tag to
pick the compensation path and only re-raises at the boundary.
"""

from enum import StrEnum
from typing import Generic, Optional, TypeVar

import attrs


T = TypeVar('T')


class StepOutcome(StrEnum):
    SUCCESS = 'SUCCESS'
    CONFLICT = 'CONFLICT'
    PAYMENT_FAILURE = 'PAYMENT_FAILURE'
    UPSTREAM_ERROR = 'UPSTREAM_ERROR'


@attrs.define(frozen=True)
class StepResult(Generic[T]):
    outcome: StepOutcome
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.outcome == StepOutcome.SUCCESS

    @property
    def reason(self) -> str:
        if self.error is None:
            return self.outcome.value
        return str(self.error) or type(self.error).__name__

    @classmethod
    def success(cls, value: Optional[T] = None) -> 'StepResult[T]':
        return cls(outcome=StepOutcome.SUCCESS, value=value)

    @classmethod
    def conflict(cls, error: Exception) -> 'StepResult[T]':
        return cls(outcome=StepOutcome.CONFLICT, error=error)

    @classmethod
    def payment_failure(cls, error: Exception) -> 'StepResult[T]':
        return cls(outcome=StepOutcome.PAYMENT_FAILURE, error=error)

    @classmethod
    def upstream_error(cls, error: Exception) -> 'StepResult[T]':
        return cls(outcome=StepOutcome.UPSTREAM_ERROR, error=error)
