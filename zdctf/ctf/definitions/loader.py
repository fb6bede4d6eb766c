"""YAML Definition Loader for Challenges and Game Settings"""

import json
import logging
from datetime import UTC, date, datetime
from pathlib import Path

import yaml
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from zdctf.core.data.database import get_db
from zdctf.core.data.models import Challenge, utc_now
from zdctf.core.data.repositories import SettingsRepository
from zdctf.ctf.matchers import check_pattern_safety, hash_flag
from zdctf.ctf.schemas.challenge import ChallengeSchema
from zdctf.ctf.schemas.settings import SETTING_KEYS

logger = logging.getLogger(__name__)

# plaintext keys accepted in settings.yaml, stored only as their hash
_HASHED_SETTING_KEYS = {"honeypot_flag": "honeypot_hash"}


class DefinitionError(ValueError):
    """A definition file is structurally valid but unusable"""


class DefinitionLoader:
    """Loads and syncs challenge/settings definitions from YAML to database

    Plaintext flags are hashed here with the competition salt, so only
    digests ever reach the database. Changing ``flag_salt`` afterwards
    invalidates every hash derived from it.
    """

    def __init__(self, definitions_path: Path | None = None):
        self.definitions_path = definitions_path or Path(__file__).parent

    def load_all(self, db: Session, overwrite_settings: bool = False) -> dict:
        """Load settings first (the salt), then challenges"""
        settings_keys = self.load_settings(db, overwrite=overwrite_settings)
        challenges = self.load_challenges(db)
        return {"challenges": challenges, "settings": settings_keys}

    def load_settings(self, db: Session, overwrite: bool = False) -> list[str]:
        """Seed settings.yaml into the system_settings table

        Keys that already have a row are left alone unless ``overwrite`` is
        set, so a restart never undoes an admin's live edit (un-pausing,
        moving the end time, ...).
        """
        settings_file = self.definitions_path / "settings.yaml"
        if not settings_file.exists():
            logger.warning("Settings file not found: %s", settings_file)
            return []

        with open(settings_file, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise DefinitionError(f"{settings_file} must be a mapping")

        repo = SettingsRepository(db)
        existing = set() if overwrite else repo.get_existing_keys()
        values = {key: self._setting_value(value) for key, value in data.items()}

        # the salt must be in place before anything is hashed with it
        if "flag_salt" in values and "flag_salt" not in existing:
            repo.set_setting("flag_salt", values["flag_salt"], commit=False)
            db.flush()
        salt = repo.get_snapshot().flag_salt

        loaded = []
        for key, value in values.items():
            if key in _HASHED_SETTING_KEYS:
                target = _HASHED_SETTING_KEYS[key]
                value = hash_flag(value, salt=salt) if value else None
                key = target
            elif key not in SETTING_KEYS:
                logger.warning("Ignoring unknown setting in %s: %s", settings_file, key)
                continue
            if key in existing:
                logger.debug("Keeping stored value for setting %s", key)
                continue
            repo.set_setting(key, value, commit=False)
            loaded.append(key)

        db.commit()
        return loaded

    def load_challenges(self, db: Session) -> list[str]:
        """Load all challenge YAML files and upsert to database"""
        challenges_dir = self.definitions_path / "challenges"
        loaded = []

        if not challenges_dir.exists():
            logger.warning("Challenges directory not found: %s", challenges_dir)
            return loaded

        salt = SettingsRepository(db).get_snapshot().flag_salt
        for yaml_file in sorted(challenges_dir.rglob("*.yaml")):
            try:
                challenge = self._load_challenge_yaml(yaml_file)
                self._upsert_challenge(db, challenge, salt)
                loaded.append(challenge.id)
                logger.debug("Loaded challenge: %s", challenge.id)
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.error("Failed to load challenge from %s: %s", yaml_file, e)

        db.commit()
        return loaded

    def _load_challenge_yaml(self, path: Path) -> ChallengeSchema:
        """Load and validate a challenge YAML file"""
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        challenge = ChallengeSchema(**data)
        if challenge.flag_type == "regex":
            report = check_pattern_safety(challenge.flag_pattern)
            if not report.safe:
                raise DefinitionError(
                    f"unsafe flag_pattern: {', '.join(report.violations)}"
                )
        return challenge

    def _upsert_challenge(self, db: Session, challenge: ChallengeSchema, salt: str):
        """Insert or update challenge in database (dialect-agnostic)
        - solve_count and first blood fields are never touched here
        """
        flag_hash = challenge.flag_hash
        if challenge.flag_type == "static" and challenge.flag:
            flag_hash = hash_flag(
                challenge.flag,
                salt=salt,
                algorithm=challenge.hash_algorithm,
                challenge_salt=challenge.flag_salt,
            )
        values = {
            "id": challenge.id,
            "title": challenge.title,
            "description": challenge.description,
            "category": challenge.category,
            "points": challenge.points,
            "flag_type": challenge.flag_type,
            "flag_hash": flag_hash.lower() if flag_hash else None,
            "flag_salt": challenge.flag_salt,
            "hash_algorithm": challenge.hash_algorithm,
            "flag_pattern": challenge.flag_pattern,
            "dependencies": json.dumps(challenge.dependencies),
            "connection_info": challenge.connection_info.model_dump_json()
            if challenge.connection_info
            else None,
            "is_active": challenge.is_active,
            "updated_at": utc_now(),
        }
        self._upsert(db, Challenge, values, "id")

    @staticmethod
    def _setting_value(value) -> str | None:
        """YAML scalars to the text stored in system_settings"""
        if value is None:
            return None
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, datetime):
            return (value if value.tzinfo else value.replace(tzinfo=UTC)).isoformat()
        if isinstance(value, date):
            return value.isoformat()
        return str(value)

    def _upsert(self, db: Session, model, values: dict, conflict_column: str = "id"):
        """Dialect-agnostic upsert (INSERT ... ON CONFLICT UPDATE)"""
        dialect = db.bind.dialect.name if db.bind else "sqlite"

        if dialect == "sqlite":
            stmt = sqlite_insert(model).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[conflict_column],
                set_={k: v for k, v in values.items() if k != conflict_column},
            )
        elif dialect == "postgresql":
            stmt = pg_insert(model).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[conflict_column],
                set_={k: v for k, v in values.items() if k != conflict_column},
            )
        else:
            # Fallback: use merge (works but slower)
            instance = model(**values)
            db.merge(instance)
            return

        db.execute(stmt)


# Singleton instance
_loader: DefinitionLoader | None = None


def get_loader() -> DefinitionLoader:
    """Get singleton loader instance"""
    global _loader  # pylint: disable=global-statement
    if _loader is None:
        _loader = DefinitionLoader()
    return _loader


def load_definitions_on_startup():
    """Load definitions on app startup - call from main.py"""
    loader = get_loader()
    db = next(get_db())
    try:
        result = loader.load_all(db)
        logger.info(
            "CTF definitions loaded: %d challenges, %d settings",
            len(result["challenges"]),
            len(result["settings"]),
        )
        return result
    finally:
        db.close()
