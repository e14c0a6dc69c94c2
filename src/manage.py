"""Marketplace management CLI.

Creates and drops the database schema, and runs the deletion cascades by
hand (for example to clean up references left behind by an interrupted
deletion).

Usage:
    python src/manage.py setup-db
    python src/manage.py drop-db
    python src/manage.py delete-phone <phone_id>
    python src/manage.py delete-user <user_id>
"""

import argparse
import sys


def _initialized_domain():
    from marketplace.domain import marketplace

    print("Initializing marketplace domain...")
    marketplace.init()
    return marketplace


def setup_database():
    from marketplace.utils.db import setup_db

    domain = _initialized_domain()
    print("Creating marketplace database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from marketplace.utils.db import drop_db

    domain = _initialized_domain()
    print("Dropping marketplace database schema...")
    drop_db(domain)
    print("Done.")


def run_cascade(kind, identifier):
    from marketplace.cascade.deletion import delete_phone, delete_user

    domain = _initialized_domain()
    with domain.domain_context():
        if kind == "phone":
            delete_phone(identifier)
        else:
            delete_user(identifier)
    print(f"Deleted {kind} {identifier} and swept references.")


def main():
    parser = argparse.ArgumentParser(description="Marketplace management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    phone_parser = subparsers.add_parser("delete-phone", help="Delete a phone and sweep carts and wishlists")
    phone_parser.add_argument("identifier")

    user_parser = subparsers.add_parser("delete-user", help="Delete a user with their listings, orders and reviews")
    user_parser.add_argument("identifier")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "delete-phone":
        run_cascade("phone", args.identifier)
    elif args.command == "delete-user":
        run_cascade("user", args.identifier)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
