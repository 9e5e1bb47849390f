from __future__ import annotations

from pydantic import BaseModel, Field

OUTCOMES: tuple[str, ...] = ("W", "L", "T")


class OutcomeCounts(BaseModel):
    W: int = Field(default=0, ge=0)
    L: int = Field(default=0, ge=0)
    T: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return self.W + self.L + self.T

    def __add__(self, other: OutcomeCounts) -> OutcomeCounts:
        return OutcomeCounts(W=self.W + other.W, L=self.L + other.L, T=self.T + other.T)

    @classmethod
    def of_result(cls, result: object) -> OutcomeCounts:
        return cls(
            W=1 if result == "W" else 0,
            L=1 if result == "L" else 0,
            T=1 if result == "T" else 0,
        )
