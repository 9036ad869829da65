"""Dispatch every scheduled notification whose time has come.

Meant to be run by an external timer (cron, a scheduled job, ...).
"""

from __future__ import annotations

import argparse
import logging

from sqlalchemy.exc import SQLAlchemyError

from campus_notify.application.use_cases.notifications import dispatch_due_notifications
from campus_notify.config import get_settings
from campus_notify.domain.errors import ProviderUnavailableError
from campus_notify.infrastructure.database import SessionLocal, initialize_database
from campus_notify.infrastructure.push import build_push_provider


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Dispatch pending scheduled notifications.",
    )
    parser.add_argument(
        "--tenant",
        default=None,
        help="Only dispatch notifications of this tenant (default: every tenant)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=100,
        help="Maximum number of notifications to dispatch (default: 100)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    settings = get_settings()
    initialize_database()
    provider = build_push_provider(settings)

    session = SessionLocal()
    try:
        reports = dispatch_due_notifications(
            session,
            provider=provider,
            tenant_id=args.tenant,
            limit=args.limit,
            settings=settings,
        )
    except ProviderUnavailableError as exc:
        raise SystemExit(f"Proveedor de notificaciones no disponible: {exc}") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Error de base de datos al despachar notificaciones: {exc}") from exc
    finally:
        session.close()
        if provider is not None:
            provider.close()

    delivered = sum(1 for report in reports if report.success)
    print(
        f"Notificaciones despachadas: {len(reports)}\n"
        f"  Con al menos un dispositivo alcanzado: {delivered}"
    )


if __name__ == "__main__":
    main()
