#!/usr/bin/env python
"""Idempotent seed script for the sample integrator projects & devices.

Usage:
    python backend/scripts/seed_sample_data.py            # seed normally
    python backend/scripts/seed_sample_data.py --dry-run  # run logic then rollback (no DB changes)
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from sqlalchemy import text

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from repairdesk import create_app, get_db  # type: ignore
from repairdesk.seed import seed_sample_data, SAMPLE_INTEGRATOR


def parse_args():
    p = argparse.ArgumentParser(
        description="Seed sample integrator projects & devices",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_sample_data.py\n  dry run: seed_sample_data.py --dry-run\n"""),
    )
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app({'SEED_SAMPLE_DATA': False})
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM projects LIMIT 1'))
        except Exception:
            # Auto-create schema for bootstrap; in real env prefer alembic upgrade
            session.rollback()
            from repairdesk.models.user import Base  # local import to avoid circular
            import repairdesk.models.project, repairdesk.models.device  # noqa: F401
            Base.metadata.create_all(session.get_bind())

    with app.app_context():
        session = get_db()
        counts = seed_sample_data(session, commit=not args.dry_run)
        if args.dry_run:
            session.rollback()
            print(f"[DRY-RUN] (rolled back) Projects would create: {counts['projects']}, Devices would create: {counts['devices']}")
        else:
            print(f"[DONE] Projects created: {counts['projects']}, Devices created: {counts['devices']}")
        print(f"[INFO] Sample integrator: {SAMPLE_INTEGRATOR}")


if __name__ == '__main__':
    main()
