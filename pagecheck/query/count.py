"""Occurrence constraints shared by every query kind."""

from __future__ import annotations

from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

COUNT_KEYS = ("count", "minimum", "maximum", "between")


def _times(n: int) -> str:
    return "1 time" if n == 1 else f"{n} times"


class CountConstraint(BaseModel):
    """How many occurrences a query expects.

    At most one family may be declared: ``count``, ``minimum``/``maximum``
    or ``between``. With nothing declared the query expects at least one
    occurrence.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    count: Optional[int] = Field(default=None, ge=0)
    minimum: Optional[int] = Field(default=None, ge=0)
    maximum: Optional[int] = Field(default=None, ge=0)
    between: Optional[Tuple[int, int]] = None

    @field_validator("between", mode="before")
    @classmethod
    def _coerce_range(cls, value: Any) -> Any:
        if isinstance(value, range):
            if value.step != 1:
                raise ValueError("between range must have a step of 1")
            if len(value) == 0:
                raise ValueError("between range must not be empty")
            return (value.start, value.stop - 1)
        return value

    @field_validator("between")
    @classmethod
    def _validate_between(cls, value: Optional[Tuple[int, int]]) -> Optional[Tuple[int, int]]:
        if value is None:
            return value
        low, high = value
        if low < 0 or high < 0:
            raise ValueError("between bounds must be >= 0")
        if low > high:
            raise ValueError(f"between lower bound {low} is greater than upper bound {high}")
        return value

    @model_validator(mode="after")
    def _single_family(self) -> "CountConstraint":
        families = [
            name
            for name, declared in (
                ("count", self.count is not None),
                ("minimum/maximum", self.minimum is not None or self.maximum is not None),
                ("between", self.between is not None),
            )
            if declared
        ]
        if len(families) > 1:
            raise ValueError("conflicting count options: " + ", ".join(families))
        if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
            raise ValueError(f"minimum {self.minimum} is greater than maximum {self.maximum}")
        return self

    @property
    def is_specified(self) -> bool:
        return any(getattr(self, key) is not None for key in COUNT_KEYS)

    def satisfied_by(self, n: int) -> bool:
        if self.count is not None:
            return n == self.count
        if self.between is not None:
            low, high = self.between
            return low <= n <= high
        if self.minimum is not None or self.maximum is not None:
            if self.minimum is not None and n < self.minimum:
                return False
            if self.maximum is not None and n > self.maximum:
                return False
            return True
        return n >= 1

    def expects_none(self) -> bool:
        """True when zero is the only count that satisfies the constraint."""

        if self.count is not None:
            return self.count == 0
        if self.between is not None:
            return self.between == (0, 0)
        if self.maximum is not None:
            return self.maximum == 0
        return False

    def describe(self) -> str:
        if self.count is not None:
            return f"exactly {_times(self.count)}"
        if self.between is not None:
            low, high = self.between
            return f"between {low} and {_times(high)}"
        if self.minimum is not None and self.maximum is not None:
            return f"between {self.minimum} and {_times(self.maximum)}"
        if self.minimum is not None:
            return f"at least {_times(self.minimum)}"
        if self.maximum is not None:
            return f"at most {_times(self.maximum)}"
        return ""
