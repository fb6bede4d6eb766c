"""Outcome Recorder - persists a correct submission in one transaction"""

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from zdctf.core.data.models import Challenge, Profile
from zdctf.core.data.repositories import (
    ChallengeRepository,
    ProfileRepository,
    SolveRepository,
    TeamRepository,
)
from zdctf.ctf.errors import Conflict, InternalError, NotFound
from zdctf.ctf.processor.scoring import Award, calculate_award
from zdctf.ctf.schemas.settings import SettingsSnapshot

logger = logging.getLogger(__name__)


class OutcomeRecorder:
    """Records a solve and every aggregate it touches, all or nothing

    The solve counter and the first blood fields are changed with single
    conditional UPDATE statements, and the (user, challenge) unique
    constraint rejects the loser of a duplicate race. No in-process locks.
    """

    def __init__(self, db: Session):
        self.db = db
        self.challenges = ChallengeRepository(db)
        self.teams = TeamRepository(db)

    def record_solve(
        self,
        profile: Profile,
        challenge: Challenge,
        snapshot: SettingsSnapshot,
        solved_at: datetime,
    ) -> Award:
        """Commit the solve, or roll back everything
        Raises:
            Conflict: the principal already has a solve for this challenge
            NotFound: the challenge disappeared mid-flight
            InternalError: any other storage failure
        """
        principal_id = profile.id
        team_id = profile.team_id
        username = profile.display_name
        challenge_id = challenge.id
        title = challenge.title
        base_points = challenge.points

        solves = SolveRepository(self.db, principal_id)
        profiles = ProfileRepository(self.db, principal_id)

        try:
            prior_count = self.challenges.increment_solve_count(challenge_id)
            if prior_count is None:
                raise NotFound()
            is_first_blood = self.challenges.claim_first_blood(
                challenge_id, principal_id, solved_at
            )
            award = calculate_award(base_points, prior_count, is_first_blood, snapshot)

            solves.add_solve(
                challenge_id,
                team_id=team_id,
                points_awarded=award.points,
                is_first_blood=award.is_first_blood,
                solved_at=solved_at,
            )
            if team_id is not None:
                self.teams.add_to_score(team_id, award.points)
            profiles.lock_team_membership()

            if award.is_first_blood:
                event_type = "first_blood"
                message = f"🩸 {username} got FIRST BLOOD on {title}!"
            else:
                event_type = "solve"
                message = f"{username} solved {title}"
            profiles.log_activity(
                event_type,
                message,
                challenge_id=challenge_id,
                team_id=team_id,
                points=award.points,
            )

            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if "unique" not in str(e.orig).lower():
                logger.error(
                    "Integrity error recording solve for %s on %s: %s",
                    principal_id,
                    challenge_id,
                    e.orig,
                )
                raise InternalError() from e
            logger.info(
                "Duplicate solve rejected for %s on %s", principal_id, challenge_id
            )
            raise Conflict() from None
        except NotFound:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(
                "Failed to record solve for %s on %s: %s",
                principal_id,
                challenge_id,
                e,
            )
            raise InternalError() from e

        logger.info(
            "Solve recorded: %s on %s for %d points%s",
            principal_id,
            challenge_id,
            award.points,
            " (first blood)" if award.is_first_blood else "",
        )
        return award
