"""
Mint a bearer token for a principal, creating its profile if needed
"""

import argparse
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# pylint: disable=wrong-import-position
# ruff: noqa: E402
from zdctf.core.auth.identity import issue_token
from zdctf.core.data.database import SessionLocal
from zdctf.core.data.models import Profile


def main() -> None:
    parser = argparse.ArgumentParser(description="Issue a ZeroDelta CTF bearer token")
    parser.add_argument("principal_id", help="Principal id (profile primary key)")
    parser.add_argument("--username", help="Username for a newly created profile")
    parser.add_argument("--team-id", type=int, help="Team for a newly created profile")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        if db.get(Profile, args.principal_id) is None:
            db.add(
                Profile(
                    id=args.principal_id,
                    username=args.username,
                    team_id=args.team_id,
                )
            )
            db.commit()
            print(f"👤 Created profile {args.principal_id}", file=sys.stderr)
    finally:
        db.close()

    print(issue_token(args.principal_id))


if __name__ == "__main__":
    main()
