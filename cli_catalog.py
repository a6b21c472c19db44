"""Terminal client that drives the catalog listing store in-process."""
from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
from pathlib import Path
from time import perf_counter
from typing import Iterable

from catalog.api_client import DummyJsonClient
from catalog.auth_store import AuthStore
from catalog.config import settings
from catalog.forms import LoginForm, validate_form
from catalog.listing_store import ListingStore
from catalog.models import SortSpec
from catalog.preferences import get_preferences
from catalog.table import build_table

GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"

HELP = "commands: page N | next | prev | search TEXT | sort FIELD [asc|desc] | sort off | refresh | logout | exit"


def parse_sort(value: str) -> SortSpec | None:
    """Parse ``field[:order]``; ``off``/``none`` clears sorting."""
    if value.lower() in {"off", "none", ""}:
        return None
    field, _, order = value.partition(":")
    return SortSpec(field=field, order=(order or "asc").lower())


def pretty_print_listing(store: ListingStore, took_ms: float) -> None:
    table = build_table(store)
    color = GREEN if took_ms < 500 else RED
    mode = "search" if store.query.query_text else "list"
    sort = f"{store.sort.field}:{store.sort.order}" if store.sort else "-"
    print(f"Mode: {mode} | sort: {sort} | ETA: {color}{took_ms:.1f} ms{RESET}")
    if table["error"]:
        print(f"{RED}{table['error']}{RESET}")
    for row in table["rows"]:
        marker = "!" if row["rating_low"] else " "
        print(
            f"  {row['id']:>4} | {row['title'][:40]:<40} | {row['brand'][:16]:<16} | "
            f"{row['sku']:<14} | {row['rating']:>9}{marker}| {row['price']:>12}"
        )
    footer = table["footer"]
    if footer:
        pages = " ".join(f"[{p}]" if p == footer["page"] else str(p) for p in footer["pages"])
        print(f"{footer['label']} | pages: {pages} of {footer['total_pages']}")


async def run_command(store: ListingStore, auth: AuthStore, line: str) -> bool:
    """Apply one shell command. Returns ``False`` when the shell should stop."""
    command, _, arg = line.partition(" ")
    command = command.lower()
    arg = arg.strip()
    started = perf_counter()
    if command in {"exit", "quit"}:
        return False
    if command == "page" and arg.isdigit():
        await store.set_page(max(1, int(arg)))
    elif command == "next":
        if store.page >= store.total_pages:
            print("Already on the last page")
            return True
        await store.set_page(store.page + 1)
    elif command == "prev":
        if store.page <= 1:
            print("Already on the first page")
            return True
        await store.set_page(store.page - 1)
    elif command == "search":
        await store.set_search(arg)
    elif command == "sort":
        field, _, order = arg.partition(" ")
        try:
            await store.set_sort(parse_sort(f"{field}:{order}" if order else field))
        except ValueError as exc:
            print(f"{RED}Invalid sort: {exc}{RESET}")
            return True
    elif command == "refresh":
        await store.load_products()
    elif command == "logout":
        auth.logout()
        print("Signed out")
        return False
    else:
        print(HELP)
        return True
    pretty_print_listing(store, (perf_counter() - started) * 1000)
    return True


async def ensure_login(auth: AuthStore, username: str | None) -> bool:
    if auth.is_authenticated:
        return True
    raw_username = username if username is not None else input("Login: ")
    password = getpass.getpass("Password: ")
    remember = input("Remember me? [y/N] ").strip().lower() in {"y", "yes"}
    form, errors = validate_form(
        LoginForm, {"username": raw_username, "password": password, "remember": remember}
    )
    if form is None:
        for field, message in errors.items():
            print(f"{RED}{field}: {message}{RESET}")
        return False
    await auth.login(form.username, form.password, form.remember)
    if auth.error:
        print(f"{RED}{auth.error}{RESET}")
        return False
    return True


async def interactive_shell(store: ListingStore, auth: AuthStore) -> None:
    print(f"Product catalog. {HELP}")
    await run_command(store, auth, "refresh")
    while True:
        try:
            line = (await asyncio.to_thread(input, "> ")).strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return
        if not line:
            continue
        if not await run_command(store, auth, line):
            return


async def batch_mode(store: ListingStore, auth: AuthStore, file_path: Path) -> None:
    with file_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            print(f"> {line}")
            if not await run_command(store, auth, line):
                return


async def run(args: argparse.Namespace) -> int:
    client = DummyJsonClient()
    preferences = get_preferences()
    auth = AuthStore(client, preferences)
    if not args.no_login and not await ensure_login(auth, args.username):
        return 1
    store = ListingStore(client, preferences)

    if args.sort is not None:
        store.query.sort = parse_sort(args.sort)
    if args.batch:
        await batch_mode(store, auth, args.batch)
        return 0
    if args.query is not None or args.page != 1:
        store.query.search = args.query or ""
        store.query.page = args.page
        started = perf_counter()
        await store.load_products()
        pretty_print_listing(store, (perf_counter() - started) * 1000)
        return 1 if store.error else 0
    await interactive_shell(store, auth)
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the product catalog")
    parser.add_argument("query", nargs="?", help="Search text. If omitted, starts REPL mode.")
    parser.add_argument("--page", type=int, default=1, help="Page to show (1-based)")
    parser.add_argument("--sort", help="Sort as field[:asc|desc], or 'off' (not persisted)")
    parser.add_argument("--batch", type=Path, help="File with shell commands to execute line by line")
    parser.add_argument("--username", help="Login name; password is prompted")
    parser.add_argument("--no-login", action="store_true", help="Skip the login gate")
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=logging.getLevelName(settings.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        force=True,
    )
    if args.page < 1:
        parser.error("--page must be 1 or greater")
    if args.sort is not None:
        try:
            parse_sort(args.sort)
        except ValueError as exc:
            parser.error(f"invalid --sort: {exc}")
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
