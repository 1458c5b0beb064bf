"""Exponential backoff schedule for upstream calls."""
from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0  # seconds before the 2nd attempt; doubles after

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")

    def delay_before(self, attempt: int) -> float:
        """Backoff before zero-based ``attempt``: 0, base, 2*base, 4*base, ..."""
        if attempt <= 0:
            return 0.0
        return self.base_delay * 2 ** (attempt - 1)
