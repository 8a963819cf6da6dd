"""
Outcome type for best-effort cache calls.

Store calls are authoritative and raise. Cache calls go through the
controller's wrappers and come back as a ``CacheOutcome`` instead, so an
accelerator failure can be inspected and logged but never propagates as a
request failure.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CacheOutcome:
    ok: bool
    value: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def hit(self) -> bool:
        return self.ok and self.value is not None

    @classmethod
    def success(cls, value: Optional[str] = None) -> "CacheOutcome":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "CacheOutcome":
        return cls(ok=False, error=error)
