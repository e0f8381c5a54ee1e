from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure "quotedesk" is importable when running as a script (python scripts/issue_token.py)
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from quotedesk import models
from quotedesk.core.security import create_access_token_for_subject
from quotedesk.database import SessionLocal


def main() -> None:
    parser = argparse.ArgumentParser(description="Mint a dev bearer token for an existing user.")
    parser.add_argument("email", help="Email of the user the token is issued for")
    parser.add_argument("--company-id", default=None, help="Company the user acts for (company_id claim)")
    parser.add_argument("--minutes", type=int, default=None, help="Token lifetime in minutes")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        user = db.query(models.User).filter(models.User.email == str(args.email).strip().lower()).first()
        if not user:
            print(f"User not found: {args.email}", file=sys.stderr)
            raise SystemExit(1)
        if not user.active:
            print(f"User is inactive: {args.email}", file=sys.stderr)
            raise SystemExit(1)

        token = create_access_token_for_subject(
            user.id, company_id=args.company_id, expires_minutes=args.minutes
        )
        print(token)
    finally:
        db.close()


if __name__ == "__main__":
    main()
