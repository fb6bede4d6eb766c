"""Repository tests: settings snapshot, atomic counters, score reconciliation"""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from zdctf.core.data.models import Challenge, Solve, Team
from zdctf.core.data.repositories import (
    ChallengeRepository,
    ProfileRepository,
    SettingsRepository,
    TeamRepository,
)


# ============================================================================
# Settings snapshot
# ============================================================================
@pytest.mark.unit
def test_empty_table_yields_defaults(db):
    snapshot = SettingsRepository(db).get_snapshot()
    assert snapshot.game_paused is False
    assert snapshot.game_start_time is None
    assert snapshot.decay_rate == 0.5
    assert snapshot.decay_factor == 10
    assert snapshot.min_points == 50
    assert snapshot.first_blood_bonus == 0
    assert snapshot.flag_salt == "zd_s3cr3t_s4lt_2024"
    assert snapshot.honeypot_hash is None


@pytest.mark.unit
def test_snapshot_parses_stored_values(db, set_setting):
    set_setting("game_paused", "true")
    set_setting("game_start_time", "2026-06-01T10:00:00Z")
    set_setting("game_end_time", "2026-06-02 10:00:00")
    set_setting("decay_rate", "0.8")
    set_setting("min_points", "75")
    set_setting("honeypot_hash", "  ABCDEF  ")
    set_setting("unrelated_key", "ignored")

    snapshot = SettingsRepository(db).get_snapshot()

    assert snapshot.game_paused is True
    assert snapshot.game_start_time == datetime(2026, 6, 1, 10, tzinfo=UTC)
    # naive timestamps are read as UTC
    assert snapshot.game_end_time == datetime(2026, 6, 2, 10, tzinfo=UTC)
    assert snapshot.decay_rate == 0.8
    assert snapshot.min_points == 75
    assert snapshot.honeypot_hash == "abcdef"


@pytest.mark.unit
def test_blank_values_fall_back_to_defaults(db, set_setting):
    set_setting("min_points", "")
    set_setting("game_end_time", None)
    snapshot = SettingsRepository(db).get_snapshot()
    assert snapshot.min_points == 50
    assert snapshot.game_end_time is None


@pytest.mark.unit
def test_existing_keys_include_blank_rows(db, set_setting):
    set_setting("game_paused", "false")
    set_setting("game_end_time", None)
    assert SettingsRepository(db).get_existing_keys() == {
        "game_paused",
        "game_end_time",
    }


@pytest.mark.unit
def test_snapshot_is_immutable(db):
    snapshot = SettingsRepository(db).get_snapshot()
    with pytest.raises(PydanticValidationError):
        snapshot.game_paused = True


@pytest.mark.unit
def test_out_of_range_decay_rejected(db, set_setting):
    set_setting("decay_rate", "1.5")
    with pytest.raises(PydanticValidationError):
        SettingsRepository(db).get_snapshot()


@pytest.mark.unit
def test_set_setting_overwrites(db):
    repo = SettingsRepository(db)
    repo.set_setting("min_points", "10")
    repo.set_setting("min_points", "20")
    assert repo.get_snapshot().min_points == 20


# ============================================================================
# Challenge counters
# ============================================================================
@pytest.mark.unit
def test_increment_returns_prior_count(db, make_challenge):
    make_challenge()
    repo = ChallengeRepository(db)
    assert repo.increment_solve_count("warmup") == 0
    assert repo.increment_solve_count("warmup") == 1
    db.commit()
    db.expire_all()
    assert db.get(Challenge, "warmup").solve_count == 2


@pytest.mark.unit
def test_increment_missing_challenge(db):
    assert ChallengeRepository(db).increment_solve_count("nope") is None


@pytest.mark.unit
def test_first_blood_claimed_once(db, make_profile, make_challenge):
    make_profile("user-1")
    make_profile("user-2")
    make_challenge()
    repo = ChallengeRepository(db)
    now = datetime(2026, 6, 1, tzinfo=UTC)
    assert repo.claim_first_blood("warmup", "user-1", now) is True
    assert repo.claim_first_blood("warmup", "user-2", now) is False
    db.commit()
    db.expire_all()
    assert db.get(Challenge, "warmup").first_blood_user_id == "user-1"


@pytest.mark.unit
def test_inactive_challenge_hidden(db, make_challenge):
    make_challenge(is_active=False)
    assert ChallengeRepository(db).get_challenge("warmup") is None


@pytest.mark.unit
def test_team_lock_set_once(db, make_profile):
    make_profile()
    repo = ProfileRepository(db, "user-1")
    assert repo.lock_team_membership() is True
    assert repo.lock_team_membership() is False


# ============================================================================
# Team score reconciliation
# ============================================================================
@pytest.mark.unit
def test_score_drift_detected_and_repaired(db, make_team, make_profile, make_challenge):
    drifted = make_team("Drifted", score=999)
    clean = make_team("Clean", score=300)
    empty = make_team("Empty", score=0)
    make_profile("user-1", team_id=drifted.id)
    make_profile("user-2", team_id=clean.id)
    make_challenge("warmup")
    make_challenge("crypto-1", flag="ZD{c1}")
    db.add_all(
        [
            Solve(user_id="user-1", challenge_id="warmup", team_id=drifted.id, points_awarded=500),
            Solve(user_id="user-1", challenge_id="crypto-1", team_id=drifted.id, points_awarded=250),
            Solve(user_id="user-2", challenge_id="warmup", team_id=clean.id, points_awarded=300),
        ]
    )
    db.commit()

    repo = TeamRepository(db)
    assert repo.find_score_drift() == [
        {"team_id": drifted.id, "name": "Drifted", "cached": 999, "actual": 750}
    ]
    assert repo.reconcile(drifted.id) == 750
    db.expire_all()
    assert db.get(Team, drifted.id).score == 750
    assert db.get(Team, empty.id).score == 0
    assert repo.find_score_drift() == []
