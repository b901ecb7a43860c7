"""Move a visa application to a new status from the command line.

Goes through the visa service, so the transition is written to the audit log
and the applicant is notified exactly as with the HTTP endpoint.

    python scripts/set_application_status.py UAE-1718000000000-ABC123XYZ approved --notes "Visa issued"
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app import create_app
from models import VISA_STATUSES
from services import get_services
from utils.errors import AppError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("application_id")
    parser.add_argument("status", choices=VISA_STATUSES)
    parser.add_argument("--notes", default=None)
    parser.add_argument("--changed-by", default="operator-cli")
    return parser


def main(argv: list[str] | None = None, app=None) -> int:
    args = build_parser().parse_args(argv)
    app = app or create_app()
    with app.app_context():
        services = get_services()
        try:
            result = services.visa.update_status(
                args.application_id, args.status, args.notes, changed_by=args.changed_by
            )
        except AppError as exc:
            print(f"Error [{exc.code}]: {exc.message}", file=sys.stderr)
            return 1
        finally:
            services.dispatcher.shutdown()
    print(f"{result['application_id']}: {result['old_status']} -> {result['new_status']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
