"""ZeroDelta CTF Data Models"""

import json
from datetime import UTC, datetime
from typing import Literal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from zdctf.core.data.database import Base

FlagType = Literal["static", "regex"]
ChallengeCategory = Literal["Web", "Pwn", "Forensics", "Crypto", "Other"]
ActivityEventType = Literal[
    "solve", "first_blood", "announcement", "team_join", "team_leave", "user_banned"
]


def utc_now() -> datetime:
    """Timezone-aware current time used for column defaults"""
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands datetimes back naive; they are always stored as UTC"""
    if value is None:
        return None
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _iso(value: datetime | None) -> str | None:
    value = as_utc(value)
    return value.isoformat().replace("+00:00", "Z") if value else None


class Team(Base):
    """Team Model
    - score is a cache of the sum of member solves, maintained by the recorder
    """

    __tablename__ = "teams"

    id = Column[int](Integer, primary_key=True, autoincrement=True)
    name = Column[str](String(100), unique=True, nullable=False)
    join_code = Column[str](String(32), unique=True, nullable=False)
    score = Column[int](Integer, default=0, nullable=False)

    created_at = Column[datetime](DateTime(timezone=True), default=utc_now)

    members = relationship("Profile", back_populates="team")

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, name='{self.name}', score={self.score})>"

    def to_dict(self) -> dict:
        """Convert team to dictionary"""
        return {
            "id": self.id,
            "name": self.name,
            "score": self.score,
            "created_at": _iso(self.created_at),
        }


class Profile(Base):
    """Competitor profile, keyed by the principal id from the identity provider"""

    __tablename__ = "profiles"

    id = Column[str](String(64), primary_key=True)
    username = Column[str](String(64), unique=True, nullable=True)
    is_banned = Column[bool](Boolean, default=False, nullable=False)
    team_id = Column[int](Integer, ForeignKey("teams.id"), nullable=True, index=True)
    # set by the first solve; blocks team hopping afterwards
    is_locked = Column[bool](Boolean, default=False, nullable=False)

    created_at = Column[datetime](DateTime(timezone=True), default=utc_now)
    updated_at = Column[datetime](
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    team = relationship("Team", back_populates="members")

    def __repr__(self) -> str:
        return f"<Profile(id='{self.id}', username='{self.username}', banned={self.is_banned})>"

    @property
    def display_name(self) -> str:
        """Name used in activity log messages"""
        return self.username or "Unknown"


class Challenge(Base):
    """CTF Challenge
    - flag_hash/flag_salt/hash_algorithm describe static flags
    - flag_pattern holds the regex for regex flags
    """

    __tablename__ = "challenges"

    id = Column[str](String(64), primary_key=True)
    title = Column[str](String(200), nullable=False)
    description = Column[str](Text, nullable=False, default="")
    category = Column[ChallengeCategory](String(20), nullable=False, default="Other")
    points = Column[int](Integer, nullable=False, default=100)

    # Secret definition
    flag_type = Column[FlagType](String(10), nullable=False, default="static")
    flag_hash = Column[str](String(128), nullable=True)
    flag_salt = Column[str](String(64), nullable=True)
    hash_algorithm = Column[str](String(20), nullable=False, default="sha256")
    flag_pattern = Column[str](Text, nullable=True)

    dependencies = Column[str](Text, nullable=True)  # JSON: ["challenge-id-1"]
    connection_info = Column[str](Text, nullable=True)  # JSON: tagged variant

    # Aggregates maintained by the recorder
    solve_count = Column[int](Integer, default=0, nullable=False)
    first_blood_user_id = Column[str](
        String(64), ForeignKey("profiles.id"), nullable=True
    )
    first_blood_at = Column[datetime](DateTime(timezone=True), nullable=True)

    is_active = Column[bool](Boolean, default=True, nullable=False)
    created_at = Column[datetime](DateTime(timezone=True), default=utc_now)
    updated_at = Column[datetime](
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        Index("idx_challenges_category", "category"),
        Index("idx_challenges_active", "is_active"),
        CheckConstraint("solve_count >= 0", name="ck_challenges_solve_count"),
    )

    def __repr__(self) -> str:
        return f"<Challenge(id='{self.id}', title='{self.title}', flag_type='{self.flag_type}')>"

    def get_dependencies(self) -> list[str]:
        """Ordered prerequisite challenge ids"""
        return json.loads(self.dependencies) if self.dependencies else []

    def to_dict(self) -> dict:
        """Convert challenge to dictionary (secrets excluded)"""
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "points": self.points,
            "flag_type": self.flag_type,
            "dependencies": self.get_dependencies(),
            "connection_info": json.loads(self.connection_info)
            if self.connection_info
            else None,
            "solve_count": self.solve_count,
            "first_blood_user_id": self.first_blood_user_id,
            "first_blood_at": _iso(self.first_blood_at),
            "is_active": self.is_active,
        }


class Solve(Base):
    """Immutable record of a correct submission"""

    __tablename__ = "solves"

    id = Column[int](Integer, primary_key=True, autoincrement=True)
    user_id = Column[str](String(64), ForeignKey("profiles.id"), nullable=False)
    challenge_id = Column[str](
        String(64), ForeignKey("challenges.id"), nullable=False
    )
    team_id = Column[int](Integer, ForeignKey("teams.id"), nullable=True)
    points_awarded = Column[int](Integer, nullable=False)
    is_first_blood = Column[bool](Boolean, default=False, nullable=False)

    created_at = Column[datetime](DateTime(timezone=True), default=utc_now)

    __table_args__ = (
        UniqueConstraint("user_id", "challenge_id", name="uq_solve_user_challenge"),
        Index("idx_solves_challenge", "challenge_id"),
        Index("idx_solves_team", "team_id"),
    )

    def __repr__(self) -> str:
        return f"<Solve(user_id='{self.user_id}', challenge_id='{self.challenge_id}', points={self.points_awarded})>"

    def to_dict(self) -> dict:
        """Convert solve to dictionary"""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "challenge_id": self.challenge_id,
            "team_id": self.team_id,
            "points_awarded": self.points_awarded,
            "is_first_blood": self.is_first_blood,
            "created_at": _iso(self.created_at),
        }


class SubmissionAttempt(Base):
    """Append-only log of evaluated submissions, read for rate limiting"""

    __tablename__ = "submission_attempts"

    id = Column[int](Integer, primary_key=True, autoincrement=True)
    user_id = Column[str](String(64), nullable=False)
    challenge_id = Column[str](String(64), nullable=False)
    is_correct = Column[bool](Boolean, default=False, nullable=False)
    ip_address = Column[str](String(45), nullable=True)

    created_at = Column[datetime](DateTime(timezone=True), default=utc_now)

    __table_args__ = (
        Index("idx_attempts_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<SubmissionAttempt(user_id='{self.user_id}', challenge_id='{self.challenge_id}', correct={self.is_correct})>"


class ActivityLog(Base):
    """Human readable, append-only scoring activity feed"""

    __tablename__ = "activity_log"

    id = Column[int](Integer, primary_key=True, autoincrement=True)
    event_type = Column[ActivityEventType](String(20), nullable=False)
    user_id = Column[str](String(64), ForeignKey("profiles.id"), nullable=True)
    challenge_id = Column[str](
        String(64), ForeignKey("challenges.id"), nullable=True
    )
    team_id = Column[int](Integer, ForeignKey("teams.id"), nullable=True)
    points = Column[int](Integer, nullable=True)
    message = Column[str](Text, nullable=False)

    created_at = Column[datetime](DateTime(timezone=True), default=utc_now, index=True)

    __table_args__ = (Index("idx_activity_event_type", "event_type"),)

    def __repr__(self) -> str:
        return f"<ActivityLog(id={self.id}, event_type='{self.event_type}')>"

    def to_dict(self) -> dict:
        """Convert activity entry to dictionary"""
        return {
            "id": self.id,
            "event_type": self.event_type,
            "user_id": self.user_id,
            "challenge_id": self.challenge_id,
            "team_id": self.team_id,
            "points": self.points,
            "message": self.message,
            "created_at": _iso(self.created_at),
        }


class SystemSetting(Base):
    """Process-wide key/value game configuration"""

    __tablename__ = "system_settings"

    key = Column[str](String(64), primary_key=True)
    value = Column[str](Text, nullable=True)
    updated_at = Column[datetime](
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self) -> str:
        return f"<SystemSetting(key='{self.key}')>"
