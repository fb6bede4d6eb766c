"""Data Repositories for the ZeroDelta CTF submission service

Counter and flag updates are single conditional UPDATE statements so the
database, not the process, arbitrates concurrent submissions.
"""

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from zdctf.core.data.models import (
    ActivityLog,
    Challenge,
    Profile,
    Solve,
    SubmissionAttempt,
    SystemSetting,
    Team,
    as_utc,
    utc_now,
)
from zdctf.ctf.schemas.settings import SETTING_KEYS, SettingsSnapshot


class PrincipalRepository:
    """Base Repository scoped to one principal, with activity logging"""

    def __init__(self, db: Session, principal_id: str):
        self.db = db
        self.principal_id = principal_id

    def log_activity(
        self,
        event_type: str,
        message: str,
        challenge_id: str | None = None,
        team_id: int | None = None,
        points: int | None = None,
        commit: bool = False,
    ) -> ActivityLog:
        """Append an activity log entry for this principal

        Args:
            event_type: solve, first_blood, user_banned, ...
            message: Human-readable description
            commit: Whether to commit immediately (default: False, relies on caller to commit)
        """
        entry = ActivityLog(
            event_type=event_type,
            user_id=self.principal_id,
            challenge_id=challenge_id,
            team_id=team_id,
            points=points,
            message=message,
        )
        self.db.add(entry)
        if commit:
            self.db.commit()
            self.db.refresh(entry)
        return entry


class SettingsRepository:
    """Repository for system settings"""

    def __init__(self, db: Session):
        self.db = db

    def get_snapshot(self) -> SettingsSnapshot:
        """Read every submission-relevant key in one statement"""
        rows = self.db.execute(
            select(SystemSetting.key, SystemSetting.value).where(
                SystemSetting.key.in_(SETTING_KEYS)
            )
        ).all()
        return SettingsSnapshot.from_rows({key: value for key, value in rows})

    def get_existing_keys(self) -> set[str]:
        """Keys that already have a row, whatever their value"""
        return set(self.db.execute(select(SystemSetting.key)).scalars())

    def set_setting(self, key: str, value: str | None, commit: bool = True) -> None:
        """Insert or replace a single setting"""
        self.db.merge(SystemSetting(key=key, value=value))
        if commit:
            self.db.commit()


class ChallengeRepository:
    """Repository for Challenge model"""

    def __init__(self, db: Session):
        self.db = db

    def get_challenge(self, challenge_id: str) -> Challenge | None:
        """Get an active challenge by id"""
        return (
            self.db.query(Challenge)
            .filter(Challenge.id == challenge_id, Challenge.is_active == True)  # noqa: E712
            .first()
        )

    def increment_solve_count(self, challenge_id: str) -> int | None:
        """Atomically bump the solve counter
        Returns the count before this solve, or None if the challenge is gone.
        """
        new_count = self.db.execute(
            update(Challenge)
            .where(Challenge.id == challenge_id)
            .values(solve_count=Challenge.solve_count + 1)
            .returning(Challenge.solve_count)
            .execution_options(synchronize_session=False)
        ).scalar_one_or_none()
        return None if new_count is None else new_count - 1

    def claim_first_blood(
        self, challenge_id: str, user_id: str, solved_at: datetime
    ) -> bool:
        """Compare-and-set the first blood fields; True if this caller won"""
        result = self.db.execute(
            update(Challenge)
            .where(
                Challenge.id == challenge_id,
                Challenge.first_blood_user_id.is_(None),
            )
            .values(first_blood_user_id=user_id, first_blood_at=solved_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class ProfileRepository(PrincipalRepository):
    """Repository for the principal's own profile"""

    def get_profile(self) -> Profile | None:
        """Get the principal's profile"""
        return self.db.get(Profile, self.principal_id)

    def ban(self) -> None:
        """Set the ban flag"""
        self.db.execute(
            update(Profile)
            .where(Profile.id == self.principal_id)
            .values(is_banned=True, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )

    def lock_team_membership(self) -> bool:
        """Set the team lock flag if not already set; True if it changed"""
        result = self.db.execute(
            update(Profile)
            .where(Profile.id == self.principal_id, Profile.is_locked == False)  # noqa: E712
            .values(is_locked=True, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class SolveRepository(PrincipalRepository):
    """Repository for the principal's solves"""

    def has_solved(self, challenge_id: str) -> bool:
        """Whether a solve exists for (principal, challenge)"""
        return (
            self.db.query(Solve.id)
            .filter(
                Solve.user_id == self.principal_id, Solve.challenge_id == challenge_id
            )
            .first()
            is not None
        )

    def get_solved_challenge_ids(self) -> set[str]:
        """All challenge ids solved by the principal"""
        rows = self.db.execute(
            select(Solve.challenge_id).where(Solve.user_id == self.principal_id)
        ).all()
        return {row[0] for row in rows}

    def add_solve(
        self,
        challenge_id: str,
        team_id: int | None,
        points_awarded: int,
        is_first_blood: bool,
        solved_at: datetime,
    ) -> Solve:
        """Insert the solve and flush so the unique constraint fires now"""
        solve = Solve(
            user_id=self.principal_id,
            challenge_id=challenge_id,
            team_id=team_id,
            points_awarded=points_awarded,
            is_first_blood=is_first_blood,
            created_at=solved_at,
        )
        self.db.add(solve)
        self.db.flush()
        return solve


class SubmissionAttemptRepository(PrincipalRepository):
    """Repository for the principal's submission attempts"""

    def record_attempt(
        self,
        challenge_id: str,
        is_correct: bool,
        ip_address: str | None = None,
        attempted_at: datetime | None = None,
        commit: bool = True,
    ) -> SubmissionAttempt:
        """Append an attempt row"""
        attempt = SubmissionAttempt(
            user_id=self.principal_id,
            challenge_id=challenge_id,
            is_correct=is_correct,
            ip_address=ip_address,
            created_at=attempted_at or utc_now(),
        )
        self.db.add(attempt)
        if commit:
            self.db.commit()
        return attempt

    def count_since(self, since: datetime) -> int:
        """Number of attempts at or after `since`"""
        return (
            self.db.query(func.count(SubmissionAttempt.id))
            .filter(
                SubmissionAttempt.user_id == self.principal_id,
                SubmissionAttempt.created_at >= since,
            )
            .scalar()
            or 0
        )

    def oldest_since(self, since: datetime) -> datetime | None:
        """Timestamp of the oldest attempt at or after `since`"""
        oldest = (
            self.db.query(func.min(SubmissionAttempt.created_at))
            .filter(
                SubmissionAttempt.user_id == self.principal_id,
                SubmissionAttempt.created_at >= since,
            )
            .scalar()
        )
        return as_utc(oldest)


class TeamRepository:
    """Repository for Team model"""

    def __init__(self, db: Session):
        self.db = db

    def get_team(self, team_id: int) -> Team | None:
        """Get team by id"""
        return self.db.get(Team, team_id)

    def add_to_score(self, team_id: int, points: int) -> None:
        """Increment the cached score in place"""
        self.db.execute(
            update(Team)
            .where(Team.id == team_id)
            .values(score=Team.score + points)
            .execution_options(synchronize_session=False)
        )

    def get_solve_total(self, team_id: int) -> int:
        """Sum of points awarded over the team's solves"""
        return (
            self.db.query(func.coalesce(func.sum(Solve.points_awarded), 0))
            .filter(Solve.team_id == team_id)
            .scalar()
        )

    def find_score_drift(self) -> list[dict]:
        """Teams whose cached score differs from the sum of their solves"""
        totals = (
            select(
                Solve.team_id.label("team_id"),
                func.sum(Solve.points_awarded).label("total"),
            )
            .where(Solve.team_id.is_not(None))
            .group_by(Solve.team_id)
            .subquery()
        )
        rows = self.db.execute(
            select(Team.id, Team.name, Team.score, func.coalesce(totals.c.total, 0))
            .outerjoin(totals, totals.c.team_id == Team.id)
            .order_by(Team.id)
        ).all()
        return [
            {"team_id": team_id, "name": name, "cached": cached, "actual": actual}
            for team_id, name, cached, actual in rows
            if cached != actual
        ]

    def reconcile(self, team_id: int, commit: bool = True) -> int:
        """Overwrite the cached score with the sum of solves"""
        total = self.get_solve_total(team_id)
        self.db.execute(
            update(Team)
            .where(Team.id == team_id)
            .values(score=total)
            .execution_options(synchronize_session=False)
        )
        if commit:
            self.db.commit()
        return total

