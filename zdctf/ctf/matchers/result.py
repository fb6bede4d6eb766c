"""Match Result Model"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass
class MatchResult:
    """Result of comparing a submission against a challenge secret
    - reason is for operator logs only and is never sent to the caller
    """

    correct: bool
    reason: str | None = None
    evidence: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __bool__(self) -> bool:
        return self.correct
