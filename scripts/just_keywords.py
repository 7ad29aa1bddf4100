#!/usr/bin/env python3
"""
Create a folder with a keywords.txt file for each manuscript.

Reads the CSV written by make_keywords_folders.py and, for every row,
makes the directory named in the 'folder' column and writes the 'Facets'
list into it, one keyword per line:

    BibID,Shelfmark,Title,Full Coverage?,Facets,,folder
    9968529323503681,CAJS Rar Ms 125,[al-Aḥādīth = Hadiths].,,"16th century, Paper, Fragment, Arabic, Islamic, Hadith",,cajs_rarms125

    mss_with_keywords/cajs_rarms125/keywords.txt

Safe to re-run: existing folders are reused and keyword files rewritten.

Usage:
    python scripts/just_keywords.py
    python scripts/just_keywords.py --source data/folders_keywords.csv --output-dir mss_with_keywords
"""

import argparse
import csv
import logging
import re
import sys
from pathlib import Path
from typing import Optional

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent
SOURCE_PATH = PROJECT_ROOT / "data" / "folders_keywords.csv"
DATA_FOLDER = PROJECT_ROOT / "mss_with_keywords"

KEYWORDS_FILE = "keywords.txt"
KEYWORD_SPLIT_RE = re.compile(r"\s*,\s*")


def split_keywords(facets: Optional[str]) -> list[str]:
    """Split a comma-separated facets string into trimmed keywords."""
    if not facets:
        return []
    keywords = (k.strip() for k in KEYWORD_SPLIT_RE.split(facets))
    return [k for k in keywords if k]


def write_keywords_folder(root: Path, folder: str, facets: Optional[str]) -> Path:
    """Create ``root/folder`` and (re)write its keywords file."""
    directory = Path(root) / folder
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / KEYWORDS_FILE
    with open(path, "w", encoding="utf-8") as f:
        for keyword in split_keywords(facets):
            f.write(f"{keyword}\n")
    return path


def materialize_csv(source: Path, root: Path) -> int:
    """
    Write a keywords folder for every row of the folder CSV.

    Returns:
        Number of folders written.
    """
    written = 0
    with open(source, newline="", encoding="utf-8-sig") as f:
        for i, row in enumerate(csv.DictReader(f), start=2):
            folder = (row.get("folder") or "").strip()
            if not folder:
                logger.warning(f"Line {i}: no folder name, skipping")
                continue
            path = write_keywords_folder(root, folder, row.get("Facets"))
            logger.debug(f"Wrote {path}")
            written += 1

    logger.info(f"Wrote {written} keyword folders to {root}")
    return written


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Create keyword folders from the folder CSV"
    )
    parser.add_argument(
        "--source",
        type=Path,
        default=SOURCE_PATH,
        help=f"Folder CSV (default: {SOURCE_PATH})"
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=DATA_FOLDER,
        help=f"Where to create the folders (default: {DATA_FOLDER})"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show detailed logging"
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.source.exists():
        logger.error(f"Source CSV not found: {args.source}")
        return 1

    materialize_csv(args.source, args.output_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
