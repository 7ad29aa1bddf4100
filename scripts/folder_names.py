#!/usr/bin/env python3
"""
Folder name normalization for OPenn keyword folders.

Turns a full Penn shelfmark ("Ms. Coll. 764 Item 124") into the folder
token used on disk ("mscoll764_item124") and keeps track of which BibIDs
produced which token so that collisions can be reported.

Shelfmark prefixes seen in the source spreadsheet:

    "CAJS Rar Ms", "LJS", "Misc Mss", "Misc Mss (Large) Box 1 Folder",
    "Misc Mss Box 3 Folder", "Misc. Mss.", "Ms. Codex", "Ms.Codex",
    "Ms. Coll.", "Ms. Oversize", "Ms. Roll", "Oversize Ms. Codex",
    "Folio GrC St812 Ef512g", "Folio Inc P-", "N6923.B9 G5",
    "Penn Museum NEP", "Yusufağa Kütüphanesi 5544/"
"""

import logging
import re
import unicodedata
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

# =============================================================================
# Patterns
# =============================================================================

# Ordered (pattern, replacement) pairs; the first pattern that matches the
# lowercased shelfmark wins and only that prefix is rewritten.
PREFIX_REWRITES = [
    (re.compile(r"^ms\.?\s*oversize\s*", re.IGNORECASE), "msoversize"),
    (re.compile(r"^ms\.?\s*coll\.\s*", re.IGNORECASE), "mscoll"),
    (re.compile(r"^misc\s*mss\s*", re.IGNORECASE), "miscmss"),
    (re.compile(r"^ljs\s*", re.IGNORECASE), "ljs"),
    # Must be tried before plain "ms codex": "oversize ms codex 12" would
    # otherwise fall through to the catch-all and keep its spaces.
    (re.compile(r"^oversize ms\.?\s*codex\s*", re.IGNORECASE), "oversize_mscodex"),
    (re.compile(r"^ms\.?\s*codex\s*", re.IGNORECASE), "mscodex"),
    # Requires whitespace after "ms" so the number stays separate from "rarms"
    (re.compile(r"^cajs\s*rar\s*ms\s+", re.IGNORECASE), "cajs_rarms"),
    # Matches anything up to "ms roll", e.g. "penn ms. roll 1066"
    (re.compile(r"^.*ms\.?\s*roll\s*", re.IGNORECASE), "msroll"),
]

FOLDER_RE = re.compile(r"folders?\s*", re.IGNORECASE)
ITEM_RE = re.compile(r"item\s*", re.IGNORECASE)
STRIP_SHELFMARK_RE = re.compile(r"\.")
UNDERSCORE_RE = re.compile(r"[-\s/]+")
# ASCII word characters only; after NFD this drops combining marks as well
# as letters with no decomposition (e.g. dotless i).
DIACRITICS_RE = re.compile(r"[^\w]", re.ASCII)


# =============================================================================
# Diagnostics
# =============================================================================

@dataclass
class Diagnostic:
    """A non-fatal problem found while naming folders."""

    kind: str
    message: str
    folder: Optional[str] = None
    bibids: list[str] = field(default_factory=list)


# =============================================================================
# Normalization
# =============================================================================

def normalize_folder(folder: str) -> str:
    """Apply the substitutions shared by every folder name."""
    folder = str(folder or "").lower().strip()
    folder = FOLDER_RE.sub("f", folder, count=1)
    folder = ITEM_RE.sub("item", folder, count=1)
    folder = STRIP_SHELFMARK_RE.sub("", folder)
    folder = UNDERSCORE_RE.sub("_", folder)
    folder = unicodedata.normalize("NFD", folder)
    return DIACRITICS_RE.sub("", folder)


def rewrite_prefix(shelfmark: str) -> str:
    """
    Lowercase a shelfmark and collapse its collection prefix.

    Only the first matching rule in PREFIX_REWRITES is applied. Shelfmarks
    without a known prefix are returned lowercased and trimmed.
    """
    prepped = shelfmark.lower().strip()
    for pattern, replacement in PREFIX_REWRITES:
        if pattern.search(prepped):
            return pattern.sub(replacement, prepped, count=1)
    return prepped


class FolderNamer:
    """
    Build folder tokens and remember which BibIDs used them.

    Collisions are never resolved here except for runs of the same
    shelfmark, which get the BibID appended. Everything else is recorded
    as a Diagnostic for the operator to fix in the source data.
    """

    def __init__(self):
        self.folders: dict[str, list[str]] = {}
        self.bibids: set[str] = set()
        self.diagnostics: list[Diagnostic] = []

    def _check_folder_name(self, folder: str, bibid: str):
        previous = self.folders.get(folder)
        if previous:
            message = (
                f"duplicate folder: '{folder}'; bibid: '{bibid}': "
                f"previous: {', '.join(previous)}"
            )
            logger.warning(message)
            self.diagnostics.append(Diagnostic(
                kind="duplicate_folder",
                message=message,
                folder=folder,
                bibids=[*previous, bibid],
            ))
        self.folders.setdefault(folder, []).append(bibid)

    def _check_bibid(self, bibid: str):
        if bibid in self.bibids:
            message = f"duplicate bibid: '{bibid}'"
            logger.warning(message)
            self.diagnostics.append(Diagnostic(
                kind="duplicate_bibid",
                message=message,
                bibids=[bibid],
            ))
        else:
            self.bibids.add(bibid)

    def folder_name(
        self,
        shelfmark: str,
        bibid: str,
        last_used_shelfmark: Optional[str],
    ) -> str:
        """
        Return the folder token for one manuscript.

        Args:
            shelfmark: Full shelfmark of the manuscript
            bibid: BibID of the manuscript
            last_used_shelfmark: Full shelfmark of the previously emitted row

        Returns:
            The normalized token, suffixed with ``_<bibid>`` when the
            shelfmark repeats the previous row's (several wills in one box).
        """
        bibid = str(bibid)
        folder = normalize_folder(rewrite_prefix(shelfmark))

        self._check_folder_name(folder, bibid)
        self._check_bibid(bibid)

        if shelfmark != last_used_shelfmark:
            return folder
        return f"{folder}_{bibid}"

    def shared_folders(self) -> dict[str, list[str]]:
        """Folders claimed by more than one BibID."""
        return {
            folder: bibids
            for folder, bibids in self.folders.items()
            if len(bibids) > 1
        }

    def summary_diagnostics(self) -> list[Diagnostic]:
        """One diagnostic per shared folder, for the end-of-run report."""
        return [
            Diagnostic(
                kind="shared_folder",
                message="|".join(bibids),
                folder=folder,
                bibids=list(bibids),
            )
            for folder, bibids in self.shared_folders().items()
        ]
