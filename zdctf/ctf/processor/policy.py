"""Policy Gate - ordered eligibility checks, first failure wins"""

import logging
import math
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from zdctf.config import settings
from zdctf.core.data.models import Challenge, Profile
from zdctf.core.data.repositories import SolveRepository, SubmissionAttemptRepository
from zdctf.ctf.errors import Conflict, Forbidden, RateLimited
from zdctf.ctf.schemas.settings import SettingsSnapshot

logger = logging.getLogger(__name__)


class PolicyGate:
    """Decides whether a principal may submit right now
    - reads only; never writes
    - every check uses the same snapshot and clock reading
    """

    def __init__(
        self,
        db: Session,
        principal_id: str,
        snapshot: SettingsSnapshot,
        now: datetime,
        max_attempts: int | None = None,
        window_seconds: int | None = None,
    ):
        self.snapshot = snapshot
        self.now = now
        self.max_attempts = max_attempts or settings.RATE_LIMIT_MAX_ATTEMPTS
        self.window_seconds = window_seconds or settings.RATE_LIMIT_WINDOW_SECONDS
        self.solves = SolveRepository(db, principal_id)
        self.attempts = SubmissionAttemptRepository(db, principal_id)

    def check_account(self, profile: Profile) -> None:
        if profile.is_banned:
            raise Forbidden("banned")

    def check_game_state(self) -> None:
        """Pause first, then the competition window"""
        if self.snapshot.game_paused:
            raise Forbidden("paused")
        start = self.snapshot.game_start_time
        end = self.snapshot.game_end_time
        if start is not None and self.now < start:
            raise Forbidden("not_started")
        if end is not None and self.now > end:
            raise Forbidden("ended")

    def check_rate_limit(self) -> None:
        """At most max_attempts logged attempts in the trailing window"""
        since = self.now - timedelta(seconds=self.window_seconds)
        count = self.attempts.count_since(since)
        if count < self.max_attempts:
            return
        oldest = self.attempts.oldest_since(since) or self.now
        elapsed = (self.now - oldest).total_seconds()
        retry_after = max(1, math.ceil(self.window_seconds - elapsed))
        logger.info(
            "Rate limited principal %s: %d attempts in %ds, retry after %ds",
            self.attempts.principal_id,
            count,
            self.window_seconds,
            retry_after,
        )
        raise RateLimited(retry_after)

    def check_not_solved(self, challenge_id: str) -> None:
        if self.solves.has_solved(challenge_id):
            raise Conflict()

    def check_dependencies(self, challenge: Challenge) -> None:
        """Every prerequisite must already be solved by the principal"""
        required = challenge.get_dependencies()
        if not required:
            return
        solved = self.solves.get_solved_challenge_ids()
        missing = [dep for dep in required if dep not in solved]
        if missing:
            logger.debug(
                "Principal %s missing prerequisites for %s: %s",
                self.solves.principal_id,
                challenge.id,
                missing,
            )
            raise Forbidden("dependencies_unmet")
