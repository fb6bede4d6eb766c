"""Static flag matcher: salted hash comparison"""

import logging

from zdctf.core.data.models import Challenge
from zdctf.ctf.matchers.base import BaseMatcher
from zdctf.ctf.matchers.hashing import digests_equal, hash_flag
from zdctf.ctf.matchers.registry import register_matcher
from zdctf.ctf.matchers.result import MatchResult
from zdctf.ctf.schemas.settings import SettingsSnapshot

logger = logging.getLogger(__name__)


@register_matcher("static")
class StaticHashMatcher(BaseMatcher):
    """Hashes the submission server side and compares it with flag_hash"""

    def check(
        self, challenge: Challenge, submission: str, snapshot: SettingsSnapshot
    ) -> MatchResult:
        if not challenge.flag_hash:
            logger.warning("Challenge %s has no flag_hash configured", challenge.id)
            return self._incorrect(challenge, "missing_flag_hash")

        algorithm = challenge.hash_algorithm or "sha256"
        try:
            digest = hash_flag(
                submission,
                salt=snapshot.flag_salt,
                algorithm=algorithm,
                challenge_salt=challenge.flag_salt,
            )
        except ValueError:
            logger.error(
                "Challenge %s uses unsupported hash algorithm %r",
                challenge.id,
                algorithm,
            )
            return self._incorrect(challenge, "unsupported_algorithm")

        if digests_equal(digest, challenge.flag_hash):
            return MatchResult(correct=True, evidence={"challenge_id": challenge.id})
        return self._incorrect(challenge, "hash_mismatch")
