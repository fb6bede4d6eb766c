"""
Unit test configuration.
"""

import json
from datetime import UTC, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from zdctf.core.data.database import Base, install_sqlite_pragmas
from zdctf.core.data.models import Challenge, Profile, SystemSetting, Team
from zdctf.ctf.matchers import hash_flag
from zdctf.ctf.schemas.settings import SettingsSnapshot

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

NOW = datetime(2026, 6, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def now():
    """Fixed clock reading inside the competition window"""
    return NOW


@pytest.fixture(scope="function")
def engine():
    """Create test database engine with fresh tables each time"""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Ensures the same connection is used
    )
    install_sqlite_pragmas(engine)
    return engine


@pytest.fixture(scope="function")
def db(engine, monkeypatch):
    """Database session with automatic cleanup between tests

    This fixture:
    1. Creates fresh in-memory database for each test
    2. Creates all tables before test
    3. Patches SessionLocal so request handlers use the test database
    4. Yields clean session for test
    5. Drops all tables after test completes
    """
    Base.metadata.create_all(bind=engine)

    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    monkeypatch.setattr(
        "zdctf.core.data.database.SessionLocal",
        TestSessionLocal,
    )

    session = TestSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def snapshot():
    """Settings snapshot with the stock defaults"""
    return SettingsSnapshot()


def static_flag_hash(flag: str, challenge_salt: str | None = None, algorithm="sha256"):
    """Hash a flag the way the loader stores it, with the default salt"""
    return hash_flag(
        flag,
        salt=SettingsSnapshot().flag_salt,
        algorithm=algorithm,
        challenge_salt=challenge_salt,
    )


@pytest.fixture
def make_team(db):
    def _make(name: str = "Red Team", join_code: str | None = None, score: int = 0):
        team = Team(name=name, join_code=join_code or f"join-{name}", score=score)
        db.add(team)
        db.commit()
        return team

    return _make


@pytest.fixture
def make_profile(db):
    def _make(
        principal_id: str = "user-1",
        username: str | None = None,
        team_id: int | None = None,
        is_banned: bool = False,
    ):
        profile = Profile(
            id=principal_id,
            username=username or principal_id,
            team_id=team_id,
            is_banned=is_banned,
        )
        db.add(profile)
        db.commit()
        return profile

    return _make


@pytest.fixture
def make_challenge(db):
    def _make(
        challenge_id: str = "warmup",
        flag: str | None = "ZD{test_flag}",
        points: int = 500,
        flag_type: str = "static",
        flag_pattern: str | None = None,
        dependencies: list[str] | None = None,
        is_active: bool = True,
        title: str | None = None,
        **fields,
    ):
        challenge = Challenge(
            id=challenge_id,
            title=title or challenge_id.replace("-", " ").title(),
            category="Web",
            points=points,
            flag_type=flag_type,
            flag_hash=static_flag_hash(
                flag,
                fields.get("flag_salt"),
                fields.get("hash_algorithm", "sha256"),
            )
            if flag_type == "static" and flag
            else None,
            flag_pattern=flag_pattern,
            dependencies=json.dumps(dependencies) if dependencies else None,
            is_active=is_active,
            **fields,
        )
        db.add(challenge)
        db.commit()
        return challenge

    return _make


@pytest.fixture
def set_setting(db):
    def _set(key: str, value: str | None):
        db.merge(SystemSetting(key=key, value=value))
        db.commit()

    return _set
