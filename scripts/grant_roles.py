#!/usr/bin/env python3
"""Grant roles to a user from the command line.

Useful for bootstrapping a deployment before any user administrator can
log in. Roles are merged into the user's current set; duplicates collapse.

Usage:
    python scripts/grant_roles.py admin@example.com db_admin dashboard_creator
    python scripts/grant_roles.py --replace viewer@example.com public
"""

import argparse
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from apps.api.auth.policy import ROLES
from apps.api.main import create_app
from apps.api.services.users import UserService


def grant_roles(email, roles, replace=False):
    """Add (or replace) roles on the user registered under ``email``."""
    app = create_app()

    with app.app_context():
        service = UserService(app.db)
        user = service.get_by_email(email)
        if not user:
            print(f"No user registered as {email}")
            return 1

        new_roles = list(roles) if replace else list(user.roles or []) + list(roles)
        result = service.update_roles(user.id, new_roles)
        print(f"User {email} now has roles: {', '.join(result['roles']) or 'none'}")
        return 0


def main():
    parser = argparse.ArgumentParser(description="Grant SeriesBoard roles to a user")
    parser.add_argument("email", help="Email of an existing user")
    parser.add_argument("roles", nargs="+", choices=ROLES, help="Roles to grant")
    parser.add_argument("--replace", action="store_true", help="Replace the user's roles instead of adding")
    args = parser.parse_args()

    sys.exit(grant_roles(args.email, args.roles, replace=args.replace))


if __name__ == "__main__":
    main()
