from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class JoinEligibility:
    label: str
    can_join: bool
    can_start: bool = False
    tone: str = "medium"  # "success", "danger", "primary", "warning", "medium"
