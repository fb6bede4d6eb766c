"""Flag Submission Service

Validator -> Policy Gate -> Secret Matcher -> (if correct) Scoring Engine ->
Outcome Recorder. Any failure short-circuits with a SubmissionError.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from zdctf.config import settings
from zdctf.core.data.models import utc_now
from zdctf.core.data.repositories import (
    ChallengeRepository,
    ProfileRepository,
    SettingsRepository,
    SubmissionAttemptRepository,
)
from zdctf.ctf.errors import (
    Conflict,
    Forbidden,
    InternalError,
    NotFound,
    SubmissionError,
    Unauthorized,
)
from zdctf.ctf.matchers import MatchResult, create_matcher, is_honeypot
from zdctf.ctf.processor.policy import PolicyGate
from zdctf.ctf.processor.recorder import OutcomeRecorder
from zdctf.ctf.processor.validator import validate_submission
from zdctf.ctf.schemas.submission import Accepted, Outcome, Rejected

logger = logging.getLogger(__name__)

# gate rejections that may be counted toward the rate limit
_COUNTABLE_REASONS = {
    "paused",
    "not_started",
    "ended",
    "dependencies_unmet",
    "already_solved",
}


class SubmissionService:
    """Handles a single flag submission for a resolved principal"""

    def __init__(self, db: Session, count_gate_rejections: bool | None = None):
        self.db = db
        self.count_gate_rejections = (
            settings.RATE_LIMIT_COUNT_GATE_REJECTIONS
            if count_gate_rejections is None
            else count_gate_rejections
        )

    def submit_flag(
        self,
        principal_id: str,
        challenge_id: str | None,
        flag_input: str | None,
        ip_address: str | None = None,
        now: datetime | None = None,
    ) -> Outcome:
        """Evaluate a submission and record it if correct
        Args:
            principal_id: Caller resolved by the identity collaborator
            challenge_id: Challenge reference as sent
            flag_input: Raw submission text as sent
            ip_address: Origin stored on the attempt log
            now: Clock reading used for every time based decision
        Returns:
            Accepted or Rejected
        Raises:
            SubmissionError subclasses for every other outcome
        """
        if not principal_id:
            raise Unauthorized()
        challenge_id, submission = validate_submission(challenge_id, flag_input)
        now = now or utc_now()

        try:
            return self._evaluate(principal_id, challenge_id, submission, ip_address, now)
        except SubmissionError:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(
                "Unexpected error handling submission from %s for %s: %s",
                principal_id,
                challenge_id,
                e,
            )
            raise InternalError() from e

    def _evaluate(
        self,
        principal_id: str,
        challenge_id: str,
        submission: str,
        ip_address: str | None,
        now: datetime,
    ) -> Outcome:
        profiles = ProfileRepository(self.db, principal_id)
        attempts = SubmissionAttemptRepository(self.db, principal_id)

        profile = profiles.get_profile()
        if profile is None:
            logger.warning("Submission from principal %s without a profile", principal_id)
            raise Unauthorized()

        snapshot = SettingsRepository(self.db).get_snapshot()
        gate = PolicyGate(self.db, principal_id, snapshot, now)

        gate.check_account(profile)
        try:
            gate.check_game_state()
            gate.check_rate_limit()
            gate.check_not_solved(challenge_id)

            challenge = ChallengeRepository(self.db).get_challenge(challenge_id)
            if challenge is None:
                raise NotFound()
            gate.check_dependencies(challenge)
        except (Forbidden, Conflict) as e:
            if self.count_gate_rejections and e.reason in _COUNTABLE_REASONS:
                attempts.record_attempt(
                    challenge_id, is_correct=False, ip_address=ip_address, attempted_at=now
                )
            raise

        matcher = create_matcher(challenge.flag_type)
        if matcher is None:
            logger.error(
                "Challenge %s has unknown flag type %r", challenge.id, challenge.flag_type
            )
            result = MatchResult(correct=False, reason="unknown_flag_type")
        else:
            result = matcher.check(challenge, submission, snapshot)
        if not result.correct:
            logger.debug(
                "Incorrect submission from %s for %s: %s",
                principal_id,
                challenge_id,
                result.reason,
            )

        attempts.record_attempt(
            challenge_id,
            is_correct=result.correct,
            ip_address=ip_address,
            attempted_at=now,
        )

        if is_honeypot(submission, snapshot):
            self._ban_for_honeypot(profiles, profile.display_name, challenge_id)
            raise Forbidden("access_denied")

        if not result.correct:
            return Rejected()

        award = OutcomeRecorder(self.db).record_solve(profile, challenge, snapshot, now)
        return Accepted.for_award(award.points, award.is_first_blood)

    def _ban_for_honeypot(
        self, profiles: ProfileRepository, username: str, challenge_id: str
    ) -> None:
        """Ban the principal and log it before anything is returned"""
        try:
            profiles.ban()
            profiles.log_activity(
                "user_banned",
                f"{username} was banned",
                challenge_id=challenge_id,
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error("Failed to ban principal %s: %s", profiles.principal_id, e)
            raise InternalError() from e
        logger.warning(
            "Honeypot flag submitted by %s on %s; principal banned",
            profiles.principal_id,
            challenge_id,
        )
