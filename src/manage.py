"""Database management CLI for the ordering domain.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
    python src/manage.py retry-notifications  # Resend failed emails
"""

import argparse
import sys


def setup_database():
    from ordering.domain import ordering
    from ordering.utils.db import setup_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Creating ordering database schema...")
    setup_db(ordering)
    print("Done.")


def drop_database():
    from ordering.domain import ordering
    from ordering.utils.db import drop_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Dropping ordering database schema...")
    drop_db(ordering)
    print("Done.")


def retry_notifications():
    from ordering.domain import ordering
    from ordering.notification.retry import retry_failed_notifications

    ordering.init()
    with ordering.domain_context():
        retried = retry_failed_notifications()
    print(f"Retried {retried} notification(s).")


def main():
    parser = argparse.ArgumentParser(description="Ordering database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("retry-notifications", help="Retry failed notifications")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "retry-notifications":
        retry_notifications()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
