#!/usr/bin/env python3
"""
Select the OPenn keyword rows from the Penn MSS keywords export and add
a folder name to each.

Input CSV has two rows per manuscript. The first carries the Penn in Hand
facets, the second the OPenn keywords; the second is the one we keep:

    BibID,Shelfmark,Title,Full Coverage?,Facets,
    9968529323503681,CAJS Rar Ms 125,[al-Aḥādīth = Hadiths].,,"Arabic, 16th century, 1515, ...",
    9968529323503681,CAJS Rar Ms 125,[al-Aḥādīth = Hadiths].,,"16th century, Paper, Fragment, Arabic, Islamic, Hadith",
    9949470363503681,Ms. Coll. 764,"Antonio Cocchi Donati will, 1424.",N,"Latin, 15th century, ...",
    9949470363503681,Ms. Coll. 764,"Antonio Cocchi Donati will, 1424.",N,"15th century, Legal, Italian, Document",

The shelfmark is replaced by the full catalog shelfmark when they differ
and a folder column is appended:

    BibID,Shelfmark,Title,Full Coverage?,Facets,,folder
    9968529323503681,CAJS Rar Ms 125,[al-Aḥādīth = Hadiths].,,"16th century, ...",,cajs_rarms125
    9949470363503681,Ms. Coll. 764 Item 124,"Antonio Cocchi Donati will, 1424.",N,"15th century, ...",,mscoll764_item124

Usage:
    python scripts/make_keywords_folders.py data/keywords.csv > data/folders_keywords.csv
    python scripts/make_keywords_folders.py data/keywords.csv --output data/folders_keywords.csv
    python scripts/make_keywords_folders.py data/keywords.csv --skip 9915804523503681
    python scripts/make_keywords_folders.py data/keywords.csv --verbose
"""

import argparse
import csv
import logging
import sys
from pathlib import Path
from typing import Iterable, Iterator, Optional

from folder_names import FolderNamer
from shelfmarks import CACHE_PATH, FetchError, ShelfmarkCache, ShelfmarkResolver

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)

BIBID_COLUMN = "BibID"
SHELFMARK_COLUMN = "Shelfmark"
FOLDER_COLUMN = "folder"

# BibIDs left out of the run entirely, e.g. records withdrawn from OPenn
SKIP_BIBIDS: frozenset[str] = frozenset()


# =============================================================================
# Row selection
# =============================================================================

def select_keyword_rows(
    rows: Iterable[list[str]],
    bibid_index: int,
    skip_bibids: Iterable[str] = (),
) -> Iterator[list[str]]:
    """
    Yield the second row of each BibID pair.

    A row is kept when its BibID matches the row right before it. Rows
    with no BibID, or a skipped one, are dropped and do not count as the
    previous row.
    """
    skip = set(skip_bibids)
    prev_bibid = None
    for row in rows:
        bibid = row[bibid_index].strip() if bibid_index < len(row) else ""
        if not bibid or bibid in skip:
            continue
        if bibid == prev_bibid:
            yield row
        prev_bibid = bibid


def column_index(header: list[str], name: str) -> int:
    """Position of a named column in the header row."""
    try:
        return header.index(name)
    except ValueError:
        raise ValueError(f"Input CSV has no '{name}' column: {header}") from None


def process_rows(
    header: list[str],
    rows: Iterable[list[str]],
    resolver: ShelfmarkResolver,
    namer: FolderNamer,
    skip_bibids: Iterable[str] = (),
) -> Iterator[list[str]]:
    """
    Yield output rows: the selected rows with full shelfmark and folder.

    Warnings about duplicate folders and BibIDs are collected on
    ``namer.diagnostics``. A FetchError from the resolver propagates.
    """
    bibid_index = column_index(header, BIBID_COLUMN)
    shelfmark_index = column_index(header, SHELFMARK_COLUMN)
    last_used_shelfmark = None

    for row in select_keyword_rows(rows, bibid_index, skip_bibids):
        row = row + [""] * (len(header) - len(row))
        bibid = row[bibid_index].strip()

        shelfmark = resolver.resolve(bibid, row[shelfmark_index])
        row[shelfmark_index] = shelfmark
        folder = namer.folder_name(shelfmark, bibid, last_used_shelfmark)
        logger.debug(f"{bibid}: {shelfmark} -> {folder}")

        last_used_shelfmark = shelfmark
        yield row + [folder]


def load_skip_file(path: Path) -> set[str]:
    """Read BibIDs to skip, one per line; '#' starts a comment."""
    bibids = set()
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.split("#", 1)[0].strip()
            if line:
                bibids.add(line)
    return bibids


# =============================================================================
# Run
# =============================================================================

def make_keywords_folders(
    input_path: Path,
    out,
    cache_path: Path = CACHE_PATH,
    skip_bibids: Iterable[str] = SKIP_BIBIDS,
    fetcher=None,
) -> bool:
    """
    Write the folder CSV for ``input_path`` to the open file ``out``.

    The shelfmark cache is saved whether or not the run finishes.

    Returns:
        True on success, False if a shelfmark lookup failed.
    """
    cache = ShelfmarkCache.load(cache_path)
    resolver = ShelfmarkResolver(cache, fetcher=fetcher)
    namer = FolderNamer()
    written = 0

    try:
        with open(input_path, newline="", encoding="utf-8-sig") as f:
            reader = csv.reader(f)
            header = next(reader, None)
            if header is None:
                logger.error(f"Input CSV is empty: {input_path}")
                return False

            writer = csv.writer(out)
            writer.writerow(header + [FOLDER_COLUMN])
            for row in process_rows(header, reader, resolver, namer, skip_bibids):
                writer.writerow(row)
                written += 1
    except FetchError as e:
        logger.error(str(e))
        return False
    finally:
        cache.save()

    logger.info(
        f"Wrote {written} rows ({resolver.fetches} catalog lookups, "
        f"{len(namer.diagnostics)} warnings)"
    )
    for diagnostic in namer.summary_diagnostics():
        logger.warning(f"Folder '{diagnostic.folder}' shared by: {diagnostic.message}")
    return True


# =============================================================================
# CLI
# =============================================================================

def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Select OPenn keyword rows and add folder names"
    )
    parser.add_argument(
        "input",
        type=Path,
        help="Keywords CSV exported from the Penn MSS spreadsheet"
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Write the folder CSV here (default: stdout)"
    )
    parser.add_argument(
        "--cache",
        type=Path,
        default=CACHE_PATH,
        help=f"Shelfmark cache file (default: {CACHE_PATH})"
    )
    parser.add_argument(
        "--skip",
        action="append",
        default=[],
        metavar="BIBID",
        help="BibID to leave out (repeatable)"
    )
    parser.add_argument(
        "--skip-file",
        type=Path,
        help="File of BibIDs to leave out, one per line"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show detailed logging"
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.input.exists():
        logger.error(f"Input file not found: {args.input}")
        return 1

    skip_bibids = set(SKIP_BIBIDS) | set(args.skip)
    if args.skip_file:
        skip_bibids |= load_skip_file(args.skip_file)

    try:
        if args.output:
            with open(args.output, "w", newline="", encoding="utf-8") as out:
                success = make_keywords_folders(args.input, out, args.cache, skip_bibids)
        else:
            success = make_keywords_folders(args.input, sys.stdout, args.cache, skip_bibids)
    except ValueError as e:
        logger.error(str(e))
        return 1

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
