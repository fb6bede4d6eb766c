"""
Report (and optionally repair) team scores that drifted from their solves

The recorder keeps teams.score equal to the sum of points_awarded over the
team's solves. This script verifies that and, with --fix, rewrites the
cached score from the solves table.
"""

import argparse
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# pylint: disable=wrong-import-position
# ruff: noqa: E402
from zdctf.core.data.database import SessionLocal
from zdctf.core.data.repositories import TeamRepository
from zdctf.logging_config import setup_logging


def reconcile(fix: bool = False) -> int:
    """Return the number of drifted teams found"""
    db = SessionLocal()
    try:
        teams = TeamRepository(db)
        drifted = teams.find_score_drift()
        for row in drifted:
            print(
                f"⚠️  Team {row['team_id']} ({row['name']}): "
                f"cached={row['cached']} actual={row['actual']}"
            )
            if fix:
                teams.reconcile(row["team_id"], commit=False)
        if fix and drifted:
            db.commit()
            print(f"🔧 Repaired {len(drifted)} team score(s)")
        return len(drifted)
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Reconcile cached team scores")
    parser.add_argument(
        "--fix", action="store_true", help="Rewrite drifted scores from solves"
    )
    args = parser.parse_args()

    setup_logging()
    drifted = reconcile(fix=args.fix)
    if not drifted:
        print("✅ All team scores match their solves")
    elif not args.fix:
        sys.exit(1)


if __name__ == "__main__":
    main()
