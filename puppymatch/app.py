"""
PuppyMatch command line client with:
- Login, filtered search and pagination against the dog catalog
- Favorites and a single match request from the listed dogs
- argparse support with --clear-cache
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os

from .config import DEFAULT_SORT
from .controller import NO_RESULTS_MESSAGE, DogSearchController
from .errors import AuthError
from .filters import SORT_LABELS
from .search import cache

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search adoptable dogs and find a match")
    parser.add_argument("--name", help="Name used to log in")
    parser.add_argument("--email", help="Email used to log in")
    parser.add_argument(
        "--breed",
        action="append",
        default=[],
        help="Breed to include (repeatable)",
    )
    parser.add_argument("--zip", dest="zip_input", default="", help="Comma separated zip codes")
    parser.add_argument("--age-min", default="", help="Minimum age in years")
    parser.add_argument("--age-max", default="", help="Maximum age in years")
    parser.add_argument(
        "--sort",
        default=DEFAULT_SORT,
        choices=sorted(SORT_LABELS),
        help="Sort order",
    )
    parser.add_argument("--page", type=int, default=1, help="Result page to show")
    parser.add_argument(
        "--favorite",
        action="append",
        default=[],
        help="Dog id from the listed page to add to favorites (repeatable)",
    )
    parser.add_argument(
        "--match",
        action="store_true",
        help="Request a match from the favorited dogs",
    )
    parser.add_argument(
        "--list-breeds",
        action="store_true",
        help="Print the available breeds and exit",
    )
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Clear disk cache before running",
    )
    return parser


def _print_messages(controller: DogSearchController) -> None:
    for domain, message in controller.messages.items():
        print(f"[{domain}] {message}")


async def run(args: argparse.Namespace, controller: DogSearchController | None = None) -> int:
    """Run one CLI session and return the process exit code."""
    controller = controller or DogSearchController()

    # Filters go in before the first refresh so one search covers the run.
    controller.filters.apply_filters(
        selected_breeds=args.breed,
        zip_input=args.zip_input,
        age_min=args.age_min,
        age_max=args.age_max,
        sort_order=args.sort,
    )
    if args.page > 1:
        controller.filters.set_page(args.page)

    if args.name or args.email:
        try:
            await controller.login(args.name or "", args.email or "")
        except AuthError as exc:
            print(f"Login failed: {exc}")
            return 1
    elif not await controller.start():
        print("Not signed in. Pass --name and --email to log in.")
        return 1

    if args.list_breeds:
        for breed in controller.breeds:
            print(breed)
        _print_messages(controller)
        return 0

    print(" | ".join(chip.label for chip in controller.chips))
    if controller.no_results:
        print(NO_RESULTS_MESSAGE)
    for record in controller.records:
        print(record)
    if controller.show_pagination:
        print(f"Page {controller.page_number} of {controller.page_count} ({controller.total} dogs)")

    by_id = {record.id: record for record in controller.records}
    for dog_id in args.favorite:
        record = by_id.get(dog_id)
        if record is None:
            logger.warning(f"Dog {dog_id} is not on this page; not favorited.")
            continue
        controller.toggle_favorite(record)

    if args.match:
        matched = await controller.find_match()
        if matched is not None:
            print("Congratulations! You found a match!")
            print(matched)
        elif controller.favorites_hint:
            print(controller.favorites_hint)

    _print_messages(controller)
    return 1 if controller.messages else 0


def main() -> None:
    """CLI entrypoint for searching the catalog."""
    log_level = (os.environ.get("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    args = build_parser().parse_args()

    if args.clear_cache:
        cache.clear()
        print("Cache cleared.")

    raise SystemExit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
