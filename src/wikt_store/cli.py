"""
Command-line interface for wikt-store databases.
"""
from __future__ import annotations

import argparse
import sys
from typing import Optional

from .config import Settings, configure_logging, load_settings
from .db import Store
from .exceptions import WiktStoreError
from .models import Page
from .relations import RelationVocabulary
from .repository import PageRepository


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the wikt-store CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = load_settings(args.config)
        configure_logging(args.log_level or settings.log_level)
        return args.func(args, settings)
    except WiktStoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="wikt-store",
        description="Query and maintain a parsed Wiktionary database",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML settings file (default: $WIKT_STORE_CONFIG)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default=None,
        help="Logging level, e.g. DEBUG or INFO",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    init_parser = subparsers.add_parser(
        "init",
        help="Create tables and fill the relation vocabulary",
    )
    init_parser.add_argument("db", nargs="?", help="Database file")
    init_parser.set_defaults(func=cmd_init)

    reconcile_parser = subparsers.add_parser(
        "reconcile",
        help="Regenerate the relation_type table",
    )
    reconcile_parser.add_argument("db", nargs="?", help="Database file")
    reconcile_parser.set_defaults(func=cmd_reconcile)

    relations_parser = subparsers.add_parser(
        "relations",
        help="List relation kinds and their ids",
    )
    relations_parser.add_argument("db", nargs="?", help="Database file")
    relations_parser.set_defaults(func=cmd_relations)

    title_parser = subparsers.add_parser("title", help="Look up a page by title")
    title_parser.add_argument("db", help="Database file")
    title_parser.add_argument("title", help="Exact page title")
    title_parser.set_defaults(func=cmd_title)

    id_parser = subparsers.add_parser("id", help="Look up a page by id")
    id_parser.add_argument("db", help="Database file")
    id_parser.add_argument("page_id", type=int, help="Page id")
    id_parser.set_defaults(func=cmd_id)

    prefix_parser = subparsers.add_parser(
        "prefix",
        help="List pages whose title starts with a prefix",
    )
    prefix_parser.add_argument("db", help="Database file")
    prefix_parser.add_argument("prefix", help="Title prefix (may be empty)")
    prefix_parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Maximum number of pages, negative for all (default: 20)",
    )
    prefix_parser.add_argument(
        "--skip-redirects",
        action="store_true",
        help="Exclude #REDIRECT pages",
    )
    prefix_parser.add_argument(
        "--lang",
        action="append",
        default=[],
        help="Only pages with an entry in this language (repeatable)",
    )
    prefix_parser.add_argument(
        "--translation-lang",
        action="append",
        default=[],
        help="Only pages translated into this language (repeatable)",
    )
    prefix_parser.add_argument(
        "--require-definition",
        action="store_true",
        help="Only pages with at least one definition",
    )
    prefix_parser.add_argument(
        "--require-relation",
        action="store_true",
        help="Only pages with at least one semantic relation",
    )
    prefix_parser.set_defaults(func=cmd_prefix)

    return parser


def _open_store(args: argparse.Namespace, settings: Settings) -> Store:
    return Store(args.db or settings.database)


def _repository(store: Store, settings: Settings) -> PageRepository:
    vocabulary = RelationVocabulary(store)
    vocabulary.rebuild()
    return PageRepository(store, vocabulary, settings.compensation)


def format_page(page: Page) -> str:
    """One-line summary of a page."""
    parts = [f"{page.id}\t{page.title}"]
    if page.is_redirect:
        parts.append(f"-> {page.redirect_target}")
    langs = sorted({lp.lang for lp in page.lang_pos})
    if langs:
        parts.append(f"[{', '.join(langs)}]")
    meanings = page.meanings()
    if meanings:
        parts.append(f"({len(meanings)} meanings)")
    return " ".join(parts)


def cmd_init(args: argparse.Namespace, settings: Settings) -> int:
    """Handle the init command."""
    with _open_store(args, settings) as store:
        vocabulary = RelationVocabulary(store)
        if store.count("relation_type") == 0:
            vocabulary.reconcile()
        else:
            vocabulary.rebuild()
        print(f"Initialized with {len(vocabulary)} relation kinds")
    return 0


def cmd_reconcile(args: argparse.Namespace, settings: Settings) -> int:
    """Handle the reconcile command."""
    with _open_store(args, settings) as store:
        count = RelationVocabulary(store).reconcile()
        print(f"Recreated relation_type with {count} rows")
    return 0


def cmd_relations(args: argparse.Namespace, settings: Settings) -> int:
    """Handle the relations command."""
    with _open_store(args, settings) as store:
        vocabulary = RelationVocabulary(store)
        vocabulary.rebuild()
        for rt in vocabulary.relation_types():
            print(f"{rt.id}\t{rt.kind.value}")
    return 0


def cmd_title(args: argparse.Namespace, settings: Settings) -> int:
    """Handle the title command."""
    with _open_store(args, settings) as store:
        page = _repository(store, settings).get_by_title(args.title)
    return _print_page(page, repr(args.title))


def cmd_id(args: argparse.Namespace, settings: Settings) -> int:
    """Handle the id command."""
    with _open_store(args, settings) as store:
        page = _repository(store, settings).get_by_id(args.page_id)
    return _print_page(page, f"id={args.page_id}")


def cmd_prefix(args: argparse.Namespace, settings: Settings) -> int:
    """Handle the prefix command."""
    with _open_store(args, settings) as store:
        pages = _repository(store, settings).get_by_prefix(
            args.prefix,
            args.limit,
            skip_redirects=args.skip_redirects,
            source_languages=args.lang,
            require_definition=args.require_definition,
            require_semantic_relation=args.require_relation,
            translation_languages=args.translation_lang,
        )
    for page in pages:
        print(format_page(page))
    return 0


def _print_page(page: Page | None, key: str) -> int:
    if page is None:
        print(f"Page not found: {key}", file=sys.stderr)
        return 1
    print(format_page(page))
    return 0


if __name__ == "__main__":
    sys.exit(main())
