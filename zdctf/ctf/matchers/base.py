"""Base Secret Matcher"""

import logging
from abc import ABC, abstractmethod

from zdctf.core.data.models import Challenge
from zdctf.ctf.matchers.result import MatchResult
from zdctf.ctf.schemas.settings import SettingsSnapshot

logger = logging.getLogger(__name__)


class BaseMatcher(ABC):
    """Abstract base class for secret matchers
    A matcher decides whether a normalized submission satisfies a challenge
    secret. It must never raise for a bad submission or a bad secret: those
    are reported as an incorrect MatchResult with a reason for the logs.
    """

    flag_type: str = ""

    @abstractmethod
    def check(
        self, challenge: Challenge, submission: str, snapshot: SettingsSnapshot
    ) -> MatchResult:
        """Compare the submission against the challenge secret
        Args:
            challenge: The challenge row holding the secret definition
            submission: Normalized submission text
            snapshot: Settings snapshot for this request (competition salt)
        Returns:
            MatchResult; correct only on a definite match
        """

    def _incorrect(self, challenge: Challenge, reason: str, **evidence) -> MatchResult:
        return MatchResult(
            correct=False,
            reason=reason,
            evidence={"challenge_id": challenge.id, **evidence},
        )
