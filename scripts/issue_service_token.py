"""Mint a bearer token for trusted callers such as the scheduling timer."""

from __future__ import annotations

import argparse
from datetime import timedelta

from campus_notify.domain.entities import SERVICE_ROLE
from campus_notify.infrastructure.security import create_access_token


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create a JWT accepted by the campus-notify API.",
    )
    parser.add_argument(
        "--subject", default="scheduler", help="Token subject (default: scheduler)"
    )
    parser.add_argument(
        "--role",
        default=SERVICE_ROLE,
        help=f"Role claim carried by the token (default: {SERVICE_ROLE})",
    )
    parser.add_argument("--tenant", default=None, help="Tenant claim (optional)")
    parser.add_argument(
        "--minutes",
        type=int,
        default=None,
        help="Lifetime in minutes (default: ACCESS_TOKEN_EXPIRE_MINUTES)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    claims: dict[str, str] = {"sub": args.subject, "role": args.role}
    if args.tenant:
        claims["tenant_id"] = args.tenant
    expires = timedelta(minutes=args.minutes) if args.minutes else None
    print(create_access_token(claims, expires_delta=expires))


if __name__ == "__main__":
    main()
