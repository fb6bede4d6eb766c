"""
Setup the database for the ZeroDelta CTF submission service
"""

import argparse
import os
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# pylint: disable=wrong-import-position
# ruff: noqa: E402
from zdctf.config import settings

# Import models to register them with the declarative base
from zdctf.core.data import models  # noqa: F401
from zdctf.core.data.database import (
    create_tables,
    get_database_info,
    test_database_connection,
)


def setup_postgresql() -> bool:
    """Create the PostgreSQL database if it does not exist yet"""

    print("Setting up PostgreSQL database...")

    try:
        # pylint: disable=import-outside-toplevel
        import psycopg2
        from psycopg2 import sql
        from psycopg2.extensions import ISOLATION_LEVEL_AUTOCOMMIT

        conn = psycopg2.connect(
            host=settings.POSTGRES_HOST,
            port=settings.POSTGRES_PORT,
            user=settings.POSTGRES_USER,
            password=settings.POSTGRES_PASSWORD,
            database="postgres",
        )
        conn.set_isolation_level(ISOLATION_LEVEL_AUTOCOMMIT)

        cursor = conn.cursor()
        cursor.execute(
            "SELECT 1 FROM pg_catalog.pg_database WHERE datname = %s",
            (settings.POSTGRES_DB,),
        )
        if not cursor.fetchone():
            cursor.execute(
                sql.SQL("CREATE DATABASE {}").format(
                    sql.Identifier(settings.POSTGRES_DB)
                )
            )
            print(f"Database {settings.POSTGRES_DB} created successfully")
        else:
            print(f"Database {settings.POSTGRES_DB} already exists")

        cursor.close()
        conn.close()
        return True
    except ImportError:
        print("❌ psycopg2 is not installed")
        print("   Install: pip install -e '.[postgres]'")
        return False
    except Exception as e:  # pylint: disable=broad-exception-caught
        print(f"❌ Error setting up PostgreSQL database: {e}")
        return False


def setup_sqlite() -> bool:
    """Make sure the SQLite database directory exists"""

    print("📁 Setting up SQLite database...")

    try:
        db_path = settings.get_database_url().replace("sqlite:///", "")
        db_dir = os.path.dirname(db_path)

        if db_dir and not os.path.exists(db_dir):
            os.makedirs(db_dir, exist_ok=True)
            print(f"📁 Created directory: {db_dir}")

        print(f"📄 SQLite database will be created at: {db_path}")
        return True

    except Exception as e:  # pylint: disable=broad-exception-caught
        print(f"❌ SQLite setup failed: {e}")
        return False


def load_definitions(
    definitions_path: str | None, reset_settings: bool = False
) -> None:
    """Seed challenges and game settings from YAML"""
    # pylint: disable=import-outside-toplevel
    from zdctf.core.data.database import SessionLocal
    from zdctf.ctf.definitions import DefinitionLoader

    loader = DefinitionLoader(Path(definitions_path) if definitions_path else None)
    db = SessionLocal()
    try:
        result = loader.load_all(db, overwrite_settings=reset_settings)
    finally:
        db.close()
    print(f"🏁 Challenges loaded: {', '.join(result['challenges']) or 'none'}")
    print(f"⚙️  Settings loaded: {', '.join(result['settings']) or 'none'}")


def main() -> None:
    """DB Setup Script"""
    parser = argparse.ArgumentParser(description="Setup ZeroDelta CTF Database")
    parser.add_argument(
        "--skip-definitions",
        action="store_true",
        help="Only create tables; do not load challenge and settings YAML",
    )
    parser.add_argument(
        "--definitions-path",
        help="Directory holding settings.yaml and challenges/ (default: bundled)",
    )
    parser.add_argument(
        "--reset-settings",
        action="store_true",
        help="Overwrite stored game settings with the values in settings.yaml",
    )
    args = parser.parse_args()

    print("🚀 ZeroDelta CTF Database Setup")
    print(f"Database Type: {settings.DATABASE_TYPE}")
    print(f"Database URL: {settings.get_database_url()}")
    print()

    # DB specific setup
    if settings.DATABASE_TYPE == "sqlite":
        if not setup_sqlite():
            sys.exit(1)
    elif settings.DATABASE_TYPE == "postgresql":
        if not setup_postgresql():
            sys.exit(1)

    print("Testing database connection...")
    if not test_database_connection():
        sys.exit(1)

    print("Creating database tables...")
    try:
        create_tables()
    except Exception as e:  # pylint: disable=broad-exception-caught
        print(f"❌ Error creating database tables: {e}")
        sys.exit(1)

    if not args.skip_definitions:
        print("Loading definitions...")
        load_definitions(args.definitions_path, args.reset_settings)

    db_info = get_database_info()
    print("✅ Database setup complete")
    print(f"Database: {db_info['type']} ({db_info.get('version', 'Unknown version')})")
    print(f"Tables: {', '.join(db_info['tables'])}")


if __name__ == "__main__":
    main()
