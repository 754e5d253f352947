"""CLI entry point for logdash."""

import argparse
import asyncio
import logging
import sys
from datetime import date

from logdash import __version__
from logdash.config import Settings, get_settings
from logdash.log_api import LogApiClient
from logdash.models import Environment, FilterField, NavigationDirection
from logdash.session import NO_RESULTS_MESSAGE, LogBrowserSession


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="logdash — browse and search remote log files")
    parser.add_argument("--base-url", help="Log API root (default: LOGDASH_API_BASE_URL)")
    parser.add_argument("--bucket", help="Bucket to browse (default: first available)")
    parser.add_argument("--env", choices=[e.value for e in Environment], help="Environment")
    parser.add_argument("--app", help="Application name")
    parser.add_argument("--date", type=date.fromisoformat, help="Day to list, YYYY-MM-DD")
    parser.add_argument("--open", metavar="KEY", help="Print the content of this log file")
    parser.add_argument(
        "--navigate",
        choices=[d.value for d in NavigationDirection],
        help="After --open, move to the previous/next file first",
    )
    parser.add_argument("--search", metavar="QUERY", help="List files containing QUERY")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _print_listing(session: LogBrowserSession) -> None:
    listing = session.listing
    print(f"Log files ({len(listing)}):")
    for position, entry in enumerate(listing, start=1):
        print(f"  {position}. {entry.file_name} ({entry.size} bytes)")


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    client = LogApiClient(
        base_url=args.base_url or settings.api_base_url,
        timeout_seconds=settings.request_timeout_seconds,
    )
    session = LogBrowserSession.from_settings(client, settings, today=args.date)
    try:
        if args.env:
            session.set_filter(FilterField.ENVIRONMENT, args.env)
        if args.app:
            session.set_filter(FilterField.APP_NAME, args.app)
        if args.bucket:
            session.set_filter(FilterField.BUCKET, args.bucket)
        session.start()
        await session.wait_idle()

        print("Buckets: " + (", ".join(session.buckets) or "(none)"))
        if session.status.error:
            print(f"Error: {session.status.error}", file=sys.stderr)
            return 1
        _print_listing(session)

        if args.open:
            if session.open(args.open) is None:
                print(f"Error: {args.open} is not in the current listing", file=sys.stderr)
                return 1
            await session.wait_idle()
            if args.navigate:
                session.navigate(args.navigate)
                await session.wait_idle()
            index = session.current_index
            print()
            print(f"== {session.selected_key} ({index + 1} of {len(session.listing)})")
            print(session.content)
            if session.status.error:
                return 1

        if args.search:
            session.search(args.search)
            await session.wait_idle()
            error = session.status.error
            if error == NO_RESULTS_MESSAGE:
                print(error)
            elif error:
                print(f"Error: {error}", file=sys.stderr)
                return 1
            else:
                print(f"Files containing {args.search!r}:")
                for name in session.search_results:
                    print(f"  {name}")
        return 0
    finally:
        await session.aclose()


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(_run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
