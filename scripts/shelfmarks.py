#!/usr/bin/env python3
"""
Full shelfmark lookup for Penn manuscripts.

The keywords spreadsheet only carries the collection shelfmark
("Ms. Coll. 764"); items inside a collection are distinguished by the
part designator in MARC 773$g ("Item 124"). The full form is fetched
from the metadata processing service and cached on disk between runs so
each BibID is looked up once.
"""

import http.client
import json
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

logger = logging.getLogger(__name__)

CACHE_DIR = Path(__file__).parent / "cache"
CACHE_PATH = CACHE_DIR / "shelfmark_cache.json"

MDPROC_URL_TEMPLATE = "http://mdproc.library.upenn.edu:9292/records/{bibid}/create?format=marc21"
USER_AGENT = "OPennKeywords/1.0 (Academic manuscript research; folder preparation)"
FETCH_TIMEOUT = 30

MARC_NS = {"marc": "http://www.loc.gov/MARC21/slim"}


class FetchError(Exception):
    """The MARC record for a BibID could not be fetched or parsed."""

    def __init__(self, bibid: str, reason: object = None):
        self.bibid = bibid
        self.reason = reason
        message = f"Error processing record with bibid: '{bibid}'"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)


# =============================================================================
# Cache
# =============================================================================

class ShelfmarkCache:
    """BibID -> full shelfmark, persisted as a JSON object."""

    def __init__(self, path: Path = CACHE_PATH, entries: Optional[dict] = None):
        self.path = Path(path)
        self.entries: dict[str, str] = {
            str(k): v for k, v in (entries or {}).items()
        }

    @classmethod
    def load(cls, path: Path = CACHE_PATH) -> "ShelfmarkCache":
        """Load the cache file, or start empty if it does not exist yet."""
        path = Path(path)
        if not path.exists():
            logger.debug(f"No shelfmark cache at {path}, starting empty")
            return cls(path)
        with open(path, encoding="utf-8") as f:
            entries = json.load(f)
        logger.info(f"Loaded {len(entries)} shelfmarks from cache: {path}")
        return cls(path, entries)

    def save(self):
        """Rewrite the whole cache file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self.entries, f, indent=2, ensure_ascii=False, sort_keys=True)
        logger.info(f"Saved {len(self.entries)} shelfmarks to {self.path}")

    def get(self, bibid: str) -> Optional[str]:
        return self.entries.get(str(bibid))

    def __contains__(self, bibid) -> bool:
        return str(bibid) in self.entries

    def __setitem__(self, bibid, shelfmark: str):
        self.entries[str(bibid)] = shelfmark

    def __len__(self) -> int:
        return len(self.entries)


# =============================================================================
# MARC lookup
# =============================================================================

def fetch_marc_xml(bibid: str, url_template: str = MDPROC_URL_TEMPLATE) -> bytes:
    """Fetch the MARC XML record for a BibID."""
    url = url_template.format(bibid=bibid)
    logger.debug(f"Fetching {url}")
    try:
        req = Request(url, headers={"User-Agent": USER_AGENT})
        with urlopen(req, timeout=FETCH_TIMEOUT) as resp:
            return resp.read()
    except (HTTPError, URLError, http.client.HTTPException, OSError, ValueError) as e:
        raise FetchError(bibid, e) from e


def _joined_text(elements: list[ET.Element]) -> str:
    return "".join("".join(el.itertext()) for el in elements)


def parse_full_shelfmark(xml_data: bytes) -> str:
    """
    Build "<call number> <part designator>" from a MARC XML record.

    Missing fields contribute nothing, so a record without 773$g gives
    back the bare call number.
    """
    root = ET.fromstring(xml_data)
    call_number = _joined_text(root.findall(".//marc:call_number", MARC_NS))
    item = _joined_text(root.findall(
        ".//marc:datafield[@tag='773']/marc:subfield[@code='g']", MARC_NS
    ))
    return f"{call_number} {item}".strip()


class ShelfmarkResolver:
    """Resolve full shelfmarks through the cache, fetching on a miss."""

    def __init__(
        self,
        cache: ShelfmarkCache,
        fetcher: Optional[Callable[[str], bytes]] = None,
    ):
        self.cache = cache
        self.fetcher = fetcher or fetch_marc_xml
        self.fetches = 0

    def resolve(self, bibid: str, shelfmark: Optional[str] = None) -> str:
        """
        Return the full shelfmark for a BibID.

        ``shelfmark`` is the value from the spreadsheet; it is only used for
        logging since the catalog is the authority for the full form.

        Raises:
            FetchError: if the record cannot be fetched or parsed
        """
        bibid = str(bibid)
        if bibid in self.cache:
            return self.cache.get(bibid)

        self.fetches += 1
        xml_data = self.fetcher(bibid)
        try:
            full = parse_full_shelfmark(xml_data)
        except ET.ParseError as e:
            raise FetchError(bibid, e) from e

        if shelfmark is not None and full != shelfmark:
            logger.debug(f"{bibid}: '{shelfmark}' -> '{full}'")
        self.cache[bibid] = full
        return full
