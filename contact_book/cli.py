#!/usr/bin/env python3
"""Contact Book CLI."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Iterable

from contact_book.config import ConfigError, Settings, load_settings
from contact_book.contacts import (
    Contact,
    ContactError,
    ContactQuery,
    ContactStore,
    NewContact,
    build_store,
)
from contact_book.contacts.spreadsheet import SpreadsheetError, export_workbook, read_workbook


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contact-book",
        description="Manage the contact store: list, add, remove, export and import.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List contacts.")
    list_parser.add_argument("--query", "-q", default="", help="Substring to search for.")
    list_parser.add_argument(
        "--favorites",
        action="store_true",
        help="Only show favorite contacts.",
    )
    list_parser.add_argument("--page", type=int, default=1, help="1-based page number.")
    list_parser.add_argument(
        "--page-size",
        type=int,
        default=0,
        help="Contacts per page (defaults to CONTACTS_PAGE_SIZE).",
    )

    add_parser = subparsers.add_parser("add", help="Create a contact.")
    add_parser.add_argument("name")
    add_parser.add_argument("phone")
    add_parser.add_argument("--email", default="")
    add_parser.add_argument("--social-account", default="")
    add_parser.add_argument("--address", default="")
    add_parser.add_argument("--favorite", action="store_true")

    remove_parser = subparsers.add_parser("remove", help="Delete a contact by id.")
    remove_parser.add_argument("contact_id", type=int)

    export_parser = subparsers.add_parser("export", help="Write all contacts to an xlsx file.")
    export_parser.add_argument("path", type=Path)

    import_parser = subparsers.add_parser("import", help="Import contacts from an xlsx file.")
    import_parser.add_argument("path", type=Path)
    import_parser.add_argument(
        "--mode",
        choices=("skip", "overwrite"),
        default=None,
        help="How to treat phones that already exist (defaults to CONTACTS_IMPORT_MODE).",
    )

    subparsers.add_parser(
        "check-config",
        help="Validate configuration and show which store is in use.",
    )

    return parser


def format_contact_rows(contacts: Iterable[Contact]) -> str:
    rows = [
        (
            str(contact.id),
            ("* " if contact.favorite else "  ") + contact.name,
            contact.phone,
            contact.email,
            contact.updated_at.strftime("%Y-%m-%d %H:%M"),
        )
        for contact in contacts
    ]
    headers = ("ID", "Name", "Phone", "Email", "Updated")
    widths = [
        max([len(headers[i])] + [len(row[i]) for row in rows])
        for i in range(len(headers))
    ]
    lines = ["  ".join(h.ljust(w) for h, w in zip(headers, widths))]
    lines.append("  ".join("-" * w for w in widths))
    for row in rows:
        lines.append("  ".join(value.ljust(w) for value, w in zip(row, widths)))
    return "\n".join(lines)


def _cmd_list(store: ContactStore, query: str, favorites: bool, page: int, page_size: int) -> int:
    result = store.list(
        ContactQuery(query=query, favorite_only=favorites, page=page, page_size=page_size)
    )
    if not result.items:
        print(f"No contacts on page {result.page} ({result.total} matching).")
        return 0
    print(format_contact_rows(result.items))
    print(
        f"\nPage {result.page}/{result.total_pages} | {result.total} matching"
        f" | {result.page_size} per page"
    )
    return 0


def _cmd_add(store: ContactStore, args: argparse.Namespace) -> int:
    contact = store.create(
        NewContact(
            name=args.name,
            phone=args.phone,
            email=args.email,
            social_account=args.social_account,
            address=args.address,
            favorite=args.favorite,
        )
    )
    print(f"Created contact {contact.id}: {contact.name} ({contact.phone})")
    return 0


def _cmd_remove(store: ContactStore, contact_id: int) -> int:
    store.remove(contact_id)
    print(f"Deleted contact {contact_id}")
    return 0


def _cmd_export(store: ContactStore, path: Path) -> int:
    contacts = store.all()
    if not contacts:
        print("No contacts to export.", file=sys.stderr)
        return 1
    path.write_bytes(export_workbook(contacts))
    print(f"Exported {len(contacts)} contacts to {path}")
    return 0


def _cmd_import(store: ContactStore, path: Path, mode: str | None) -> int:
    try:
        rows = read_workbook(path.read_bytes())
    except (OSError, SpreadsheetError) as exc:
        print(f"Import failed: {exc}", file=sys.stderr)
        return 1

    report = store.import_contacts(rows, mode=mode)
    print(report.message)
    for detail in report.details:
        print(f" - {detail}")
    return 0


def _cmd_check_config(settings: Settings, store: ContactStore) -> int:
    print(
        "Storage:",
        store.describe(),
        f"| page size {settings.default_page_size} (max {settings.max_page_size})",
        f"| import mode {settings.import_mode}",
        f"| environment={settings.environment}",
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=os.getenv("CONTACTS_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings()
        store = build_store(settings)
    except (ConfigError, ContactError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    try:
        if args.command == "list":
            return _cmd_list(store, args.query, args.favorites, args.page, args.page_size)
        if args.command == "add":
            return _cmd_add(store, args)
        if args.command == "remove":
            return _cmd_remove(store, args.contact_id)
        if args.command == "export":
            return _cmd_export(store, args.path)
        if args.command == "import":
            return _cmd_import(store, args.path, args.mode)
        if args.command == "check-config":
            return _cmd_check_config(settings, store)
    except ContactError as exc:
        print(f"{args.command} failed: {exc}", file=sys.stderr)
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
