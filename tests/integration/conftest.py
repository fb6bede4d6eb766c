"""
Integration test configuration.

Race tests need real concurrent connections, so they run against a
file-backed SQLite database (WAL, busy timeout) instead of the shared
in-memory connection used by unit tests.
"""

import pytest
from sqlalchemy.orm import sessionmaker

from zdctf.core.data.database import Base, create_database_engine
from zdctf.core.data.models import Challenge, Profile, Team
from zdctf.ctf.matchers import hash_flag
from zdctf.ctf.schemas.settings import SettingsSnapshot

FLAG = "ZD{race_condition}"


@pytest.fixture
def session_factory(tmp_path):
    engine = create_database_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    yield factory
    engine.dispose()


@pytest.fixture
def seed(session_factory):
    """Insert teams, profiles and one static challenge worth 500"""

    def _seed(principal_ids: list[str], team_of=None, challenges=("race",)):
        db = session_factory()
        try:
            team_ids = {}
            for principal_id in principal_ids:
                team_name = team_of(principal_id) if team_of else None
                if team_name and team_name not in team_ids:
                    team = Team(name=team_name, join_code=f"code-{team_name}")
                    db.add(team)
                    db.flush()
                    team_ids[team_name] = team.id
                db.add(
                    Profile(
                        id=principal_id,
                        username=principal_id,
                        team_id=team_ids.get(team_name),
                    )
                )
            for challenge_id in challenges:
                db.add(
                    Challenge(
                        id=challenge_id,
                        title=challenge_id.title(),
                        points=500,
                        flag_type="static",
                        flag_hash=hash_flag(FLAG, salt=SettingsSnapshot().flag_salt),
                    )
                )
            db.commit()
            return team_ids
        finally:
            db.close()

    return _seed
