"""
Result types returned by order transitions.

Settlement side effects (shift accrual, loyalty) are a best-effort channel:
they never abort the order operation, and each reports an explicit outcome
that callers and tests can inspect.
"""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class SideEffectOutcome:
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"

    name: str
    status: str
    detail: str = ""


@dataclass
class TransitionResult:
    order: object
    side_effects: List[SideEffectOutcome] = field(default_factory=list)
    stock_deducted_now: bool = False
    stock_reverted_now: bool = False

    def outcome(self, name) -> Optional[SideEffectOutcome]:
        for side_effect in self.side_effects:
            if side_effect.name == name:
                return side_effect
        return None

    @property
    def failed_side_effects(self) -> List[SideEffectOutcome]:
        return [s for s in self.side_effects if s.status == SideEffectOutcome.FAILED]
