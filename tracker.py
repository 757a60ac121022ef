#!/usr/bin/env python3
"""Book Tracker CLI - reading log, stats and calendar."""
import argparse
import asyncio
import sys
from pathlib import Path
from tabulate import tabulate
from booktracker.async_client import AsyncMetadataLookup
from booktracker.config import Config
from booktracker.errors import BookTrackerError, ImportParseError
from booktracker.events import project_events, events_in_month
from booktracker.filtering import visible, progress_fraction
from booktracker.form import BookForm
from booktracker.lookup import MetadataLookup
from booktracker.models import STATUSES, STATUS_NOT_STARTED
from booktracker.repository import BookRepository
from booktracker.stats import compute_stats
from booktracker.storage import LocalStore, open_backend
from booktracker.theme import (
    init_theme, toggle_theme, set_theme, color_status, color_enabled, DARK, LIGHT,
)
import logging

logger = logging.getLogger(__name__)

SHORT_ID = 8


def setup_logging(config: Config):
    """Configure root logging once for the CLI."""
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.WARNING),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def truncate(text: str, width: int) -> str:
    return text[:width] + "..." if len(text) > width else text


def fetch_metadata(title: str, config: Config, backend, use_async: bool = False):
    """Run the Google Books -> Open Library lookup."""
    if use_async:
        async def run():
            async with AsyncMetadataLookup(
                api_key=config.GOOGLE_BOOKS_API_KEY,
                timeout=config.DEFAULT_TIMEOUT
            ) as lookup:
                return await lookup.fetch(title)
        return asyncio.run(run())
    
    cache_db = backend if hasattr(backend, "cache_get") else None
    with MetadataLookup.from_config(config, cache_db=cache_db) as lookup:
        return lookup.fetch(title)


def display_books(books, theme: str, out=None):
    """Print the book list as a table."""
    out = out or sys.stdout
    if not books:
        print("No books found.", file=out)
        return
    
    use_color = color_enabled(out)
    headers = ["ID", "Title", "Genre", "Pages", "Status", "Progress", "Format", "Start", "Finish", "Score"]
    rows = []
    for book in books:
        fraction = progress_fraction(book)
        rows.append([
            book.id[:SHORT_ID],
            truncate(book.title, 40),
            truncate(book.genre, 30),
            book.pages,
            color_status(book.status, theme, use_color),
            f"{book.current_pages}/{book.pages} ({fraction:.0%})" if fraction is not None else "",
            book.format,
            book.start_date or "N/A",
            book.finish_date or "N/A",
            f"{book.score:g}" if book.score is not None else "N/A",
        ])
    print(tabulate(rows, headers=headers, tablefmt="simple"), file=out)


def cmd_list(args, repo: BookRepository, theme: str, **_):
    display_books(visible(repo.list(), args.filter or ""), theme)


def form_from_args(args, form: BookForm) -> BookForm:
    """Overlay the fields given on the command line."""
    for name in ("title", "cover", "genre", "pages", "status", "start_date",
                 "finish_date", "format", "current_pages", "score", "comments"):
        value = getattr(args, name, None)
        if value is not None:
            setattr(form, name, str(value))
    return form


def cmd_add(args, repo: BookRepository, config: Config, backend, **_):
    form = BookForm(format=config.FORMATS[0] if config.FORMATS else "physical")
    form_from_args(args, form)
    if args.fetch:
        if not form.title:
            raise BookTrackerError("Enter a title")
        form.apply_metadata(fetch_metadata(form.title, config, backend, args.use_async))
        # Explicit flags win over fetched values
        form_from_args(args, form)
    book = form.submit(repo)
    print(f"Added {book.title} [{book.id[:SHORT_ID]}]")


def cmd_edit(args, repo: BookRepository, config: Config, backend, **_):
    form = BookForm.from_record(repo.find(args.ref))
    form_from_args(args, form)
    if args.fetch:
        form.apply_metadata(fetch_metadata(form.title, config, backend, args.use_async))
        form_from_args(args, form)
    book = form.submit(repo)
    print(f"Updated {book.title} [{book.id[:SHORT_ID]}]")


def confirm_delete(book) -> bool:
    answer = input(f"Are you sure you want to delete {book.title!r}? [y/N] ")
    return answer.strip().lower() in {"y", "yes"}


def cmd_delete(args, repo: BookRepository, **_):
    book = repo.find(args.ref)
    removed = repo.remove(book.id, confirm=None if args.yes else confirm_delete)
    if removed:
        print(f"Deleted {removed.title}")
    else:
        print("Cancelled")


def cmd_fetch(args, config: Config, backend, **_):
    result = fetch_metadata(args.title, config, backend, args.use_async)
    print(tabulate(
        [["Cover", result.cover or "N/A"], ["Genre", result.genre], ["Pages", result.pages]],
        tablefmt="plain"
    ))


def cmd_stats(args, repo: BookRepository, **_):
    stats = compute_stats(repo.list())
    
    print("\n" + "=" * 50)
    print("READING STATISTICS")
    print("=" * 50)
    print(f"Total books: {stats.total}")
    print(f"Finished: {stats.finished_count}")
    print(f"Currently reading: {stats.reading_count}")
    print(f"Average score: {stats.average_score_label}")
    print("=" * 50)
    
    if stats.top_finished:
        print("\nTop finished books")
        print(tabulate(
            [[i, b.title, f"{b.score:g}"] for i, b in enumerate(stats.top_finished, 1)],
            headers=["#", "Title", "Score"]
        ))
    
    for heading, tally in (("Genres", stats.genre_tally), ("Formats", stats.format_tally)):
        if not tally:
            continue
        total = sum(tally.values())
        rows = [
            [name, count, f"{count / total:.0%}"]
            for name, count in sorted(tally.items(), key=lambda kv: kv[1], reverse=True)
        ]
        print(f"\n{heading}")
        print(tabulate(rows, headers=["Name", "Books", "Share"]))
    print()


def cmd_calendar(args, repo: BookRepository, **_):
    events = project_events(repo.list())
    if args.month:
        events = events_in_month(events, args.month)
    else:
        events = sorted(events, key=lambda e: e.start)
    
    if not events:
        print("No reading activity.")
        return
    print(tabulate([[e.start, e.title] for e in events], headers=["Date", "Event"]))


def cmd_export(args, repo: BookRepository, **_):
    data = repo.export_json()
    if args.output:
        Path(args.output).write_text(data + "\n", encoding="utf-8")
        logger.info(f"Exported {len(repo)} books to {args.output}")
        print(f"Exported {len(repo)} books to {args.output}")
    else:
        print(data)


def cmd_import(args, repo: BookRepository, **_):
    try:
        text = Path(args.file).read_text(encoding="utf-8")
    except OSError as e:
        raise BookTrackerError(f"Error importing data: {e}") from e
    count = repo.import_json(text)
    print(f"Imported {count} books")


def cmd_cache(args, backend, **_):
    """Show lookup cache statistics (postgres backend only)."""
    if not hasattr(backend, "get_stats"):
        print("The lookup cache is only kept with the postgres backend.")
        return
    
    stats = backend.get_stats()
    
    print("\n" + "=" * 50)
    print("LOOKUP CACHE")
    print("=" * 50)
    print(f"Stored items: {stats['stored_items']}")
    print(f"Cached API responses: {stats['cached_responses']}")
    print(f"Expired cache entries: {stats['expired_cache_entries']}")
    print("=" * 50 + "\n")
    
    if args.cleanup:
        deleted = backend.cleanup_expired_cache()
        print(f"Cleaned up {deleted} expired cache entries\n")


def cmd_theme(args, store: LocalStore, theme: str, **_):
    if args.action == "toggle":
        theme = toggle_theme(store, theme)
    elif args.action in ("dark", "light"):
        theme = set_theme(store, DARK if args.action == "dark" else LIGHT)
    print(f"Theme: {'dark' if theme == DARK else 'light'}")


COMMANDS = {
    "list": cmd_list,
    "add": cmd_add,
    "edit": cmd_edit,
    "delete": cmd_delete,
    "fetch": cmd_fetch,
    "stats": cmd_stats,
    "calendar": cmd_calendar,
    "export": cmd_export,
    "import": cmd_import,
    "theme": cmd_theme,
    "cache": cmd_cache,
}


def add_record_arguments(parser, config: Config, creating: bool):
    """Book fields shared by add and edit."""
    if creating:
        parser.add_argument("title", help="Book title")
    else:
        parser.add_argument("--title", help="Book title")
    parser.add_argument("--cover", help="Cover image URL")
    parser.add_argument("--genre", help="Comma-separated genres")
    parser.add_argument("--pages", type=int, help="Total pages")
    parser.add_argument("--status", choices=STATUSES, default=STATUS_NOT_STARTED if creating else None)
    parser.add_argument("--start", dest="start_date", help="Start date (YYYY-MM-DD)")
    parser.add_argument("--finish", dest="finish_date", help="Finish date (YYYY-MM-DD)")
    parser.add_argument("--format", choices=config.FORMATS, help="Book format")
    parser.add_argument("--current", dest="current_pages", type=int, help="Pages read so far (reading only)")
    parser.add_argument("--score", type=float, help="Score from 0 to 10")
    parser.add_argument("--comments", help="Notes")
    parser.add_argument("--fetch", action="store_true", help="Fill cover, genre and pages from online lookup")
    parser.add_argument("--async", dest="use_async", action="store_true", help="Use async lookup client")


def build_parser(config: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Book Tracker - personal reading log",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Add a book and fill details from Google Books / Open Library
  %(prog)s add "Dune" --fetch --status reading --current 120
  
  # Filter the list by title or genre
  %(prog)s list --filter sci
  
  # Back up and restore
  %(prog)s export --output books.json
  %(prog)s import books.json
        """
    )
    
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")
    
    list_parser = subparsers.add_parser("list", help="List books")
    list_parser.add_argument("--filter", help="Match title or genre")
    
    add_parser = subparsers.add_parser("add", help="Add a book")
    add_record_arguments(add_parser, config, creating=True)
    
    edit_parser = subparsers.add_parser("edit", help="Edit a book")
    edit_parser.add_argument("ref", help="Book id (or unique prefix)")
    add_record_arguments(edit_parser, config, creating=False)
    
    delete_parser = subparsers.add_parser("delete", help="Delete a book")
    delete_parser.add_argument("ref", help="Book id (or unique prefix)")
    delete_parser.add_argument("--yes", action="store_true", help="Skip confirmation")
    
    fetch_parser = subparsers.add_parser("fetch", help="Look up book metadata")
    fetch_parser.add_argument("title", help="Book title")
    fetch_parser.add_argument("--async", dest="use_async", action="store_true", help="Use async client")
    
    subparsers.add_parser("stats", help="Show reading statistics")
    
    calendar_parser = subparsers.add_parser("calendar", help="Show start/finish dates")
    calendar_parser.add_argument("--month", help="Only this month (YYYY-MM)")
    
    export_parser = subparsers.add_parser("export", help="Export books as JSON")
    export_parser.add_argument("--output", help="Output file (default: stdout)")
    
    import_parser = subparsers.add_parser("import", help="Replace all books from a JSON export")
    import_parser.add_argument("file", help="JSON file")
    
    cache_parser = subparsers.add_parser("cache", help="Show lookup cache statistics")
    cache_parser.add_argument("--cleanup", action="store_true", help="Remove expired cache entries")
    
    theme_parser = subparsers.add_parser("theme", help="Show or change the color theme")
    theme_parser.add_argument("action", nargs="?", choices=["show", "toggle", "dark", "light"], default="show")
    
    return parser


def main(argv=None):
    """Main CLI entry point."""
    config = Config()
    parser = build_parser(config)
    args = parser.parse_args(argv)
    
    if not args.command:
        parser.print_help()
        sys.exit(1)
    
    setup_logging(config)
    
    try:
        with open_backend(config) as backend:
            store = LocalStore(backend, config.BOOKS_KEY, config.THEME_KEY)
            repo = BookRepository(store)
            theme = init_theme(store)
            COMMANDS[args.command](
                args,
                repo=repo,
                store=store,
                theme=theme,
                config=config,
                backend=backend,
            )
    
    except ImportParseError as e:
        print(f"Error importing data: {e}", file=sys.stderr)
        sys.exit(1)
    except BookTrackerError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyError as e:
        print(f"No book matches {e.args[0]!r}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
