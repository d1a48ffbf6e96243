from __future__ import annotations

import argparse

from .db import SessionLocal
from .services import identity


def seed_admin(username: str, password: str) -> bool:
    with SessionLocal() as session:
        profile = identity.bootstrap_admin(
            session, username=username, password=password
        )
    return profile is not None


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the first admin account.")
    parser.add_argument("username")
    parser.add_argument("password")
    args = parser.parse_args()

    created = seed_admin(args.username, args.password)
    print(f"Seeded admin: {int(created)}")


if __name__ == "__main__":
    main()
