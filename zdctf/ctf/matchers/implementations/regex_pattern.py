"""Regex flag matcher: pre-checked pattern evaluated under a hard timeout"""

import logging

import regex

from zdctf.config import settings
from zdctf.core.data.models import Challenge
from zdctf.ctf.matchers.base import BaseMatcher
from zdctf.ctf.matchers.registry import register_matcher
from zdctf.ctf.matchers.result import MatchResult
from zdctf.ctf.matchers.safety import check_pattern_safety
from zdctf.ctf.schemas.settings import SettingsSnapshot

logger = logging.getLogger(__name__)


@register_matcher("regex")
class RegexPatternMatcher(BaseMatcher):
    """Searches the submission with the challenge's flag_pattern

    Patterns that fail the static safety check are never compiled. Patterns
    that pass run with an engine-level timeout; a timeout counts as incorrect.
    """

    def __init__(self, timeout_ms: int | None = None):
        self.timeout = (
            timeout_ms if timeout_ms is not None else settings.REGEX_TIMEOUT_MS
        ) / 1000

    def check(
        self, challenge: Challenge, submission: str, snapshot: SettingsSnapshot
    ) -> MatchResult:
        pattern = challenge.flag_pattern
        if not pattern:
            logger.warning("Challenge %s has no flag_pattern configured", challenge.id)
            return self._incorrect(challenge, "missing_pattern")

        report = check_pattern_safety(pattern)
        if not report.safe:
            logger.warning(
                "Rejected unsafe pattern for challenge %s: %s",
                challenge.id,
                ", ".join(report.violations),
            )
            return self._incorrect(
                challenge, "unsafe_pattern", violations=report.violations
            )

        try:
            compiled = regex.compile(pattern)
        except regex.error as e:
            logger.warning(
                "Pattern for challenge %s does not compile: %s", challenge.id, e
            )
            return self._incorrect(challenge, "invalid_pattern")

        try:
            matched = compiled.search(submission, timeout=self.timeout, concurrent=True)
        except TimeoutError:
            logger.warning(
                "Pattern for challenge %s timed out after %.0f ms",
                challenge.id,
                self.timeout * 1000,
            )
            return self._incorrect(challenge, "timeout")

        if matched is None:
            return self._incorrect(challenge, "no_match")
        return MatchResult(correct=True, evidence={"challenge_id": challenge.id})
