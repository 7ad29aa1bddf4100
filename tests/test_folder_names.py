"""
Tests for folder name normalization (scripts/folder_names.py)

Run: pytest tests/test_folder_names.py -v
"""

import logging
import sys
from pathlib import Path

import pytest

# Ensure scripts/ is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "scripts"))

from folder_names import (
    PREFIX_REWRITES,
    FolderNamer,
    normalize_folder,
    rewrite_prefix,
)


# ─── Prefix rewrites ───────────────────────────────────────────────────────

class TestRewritePrefix:
    @pytest.mark.parametrize("shelfmark, expected", [
        ("Ms. Oversize 7", "msoversize7"),
        ("Ms. Coll. 764", "mscoll764"),
        ("Misc Mss 12", "miscmss12"),
        ("LJS 101", "ljs101"),
        ("Oversize Ms. Codex 12", "oversize_mscodex12"),
        ("Ms. Codex 1058", "mscodex1058"),
        ("Ms.Codex 1058", "mscodex1058"),
        ("CAJS Rar Ms 125", "cajs_rarms125"),
        ("Ms. Roll 1066", "msroll1066"),
    ])
    def test_known_prefixes(self, shelfmark, expected):
        assert rewrite_prefix(shelfmark) == expected

    def test_oversize_codex_not_routed_to_codex(self):
        assert rewrite_prefix("Oversize Ms. Codex 12").startswith("oversize_mscodex")

    def test_oversize_codex_rule_precedes_codex_rule(self):
        replacements = [replacement for _, replacement in PREFIX_REWRITES]
        assert replacements.index("oversize_mscodex") < replacements.index("mscodex")

    def test_only_first_rule_applied(self):
        # "ms oversize" wins; the later "ms codex" rule is never applied
        assert rewrite_prefix("Ms. Oversize Ms. Codex 3") == "msoversizems. codex 3"

    def test_roll_matches_after_leading_text(self):
        assert rewrite_prefix("Penn Ms. Roll 4") == "msroll4"

    def test_cajs_requires_space_before_number(self):
        assert rewrite_prefix("CAJS Rar Ms125") == "cajs rar ms125"

    def test_unknown_prefix_lowercased_and_trimmed(self):
        assert rewrite_prefix("  N6923.B9 G5 ") == "n6923.b9 g5"


# ─── Character normalization ───────────────────────────────────────────────

class TestNormalizeFolder:
    def test_periods_stripped(self):
        assert normalize_folder("n6923.b9 g5") == "n6923b9_g5"

    def test_separators_collapse_to_underscore(self):
        assert normalize_folder("a - b / c  d") == "a_b_c_d"

    def test_folder_becomes_f(self):
        assert normalize_folder("miscmssbox 3 folder 12") == "miscmssbox_3_f12"

    def test_folders_becomes_f(self):
        assert normalize_folder("box 2 folders 4-5") == "box_2_f4_5"

    def test_item_space_removed(self):
        assert normalize_folder("mscoll764 item 124") == "mscoll764_item124"

    def test_diacritics_removed(self):
        assert normalize_folder("Yusufağa Kütüphanesi 5544/") == "yusufaga_kutuphanesi_5544_"

    def test_non_word_characters_removed(self):
        assert normalize_folder("misc mss (large) box 1") == "misc_mss_large_box_1"

    def test_non_decomposable_letters_removed(self):
        # dotless i has no NFD decomposition
        assert normalize_folder("kıtab") == "ktab"


# ─── Folder names ──────────────────────────────────────────────────────────

class TestFolderName:
    def test_cajs(self):
        namer = FolderNamer()
        assert namer.folder_name("CAJS Rar Ms 125", "9968529323503681", None) == "cajs_rarms125"

    def test_collection_item(self):
        namer = FolderNamer()
        folder = namer.folder_name("Ms. Coll. 764 Item 124", "9949470363503681", None)
        assert folder == "mscoll764_item124"

    def test_oversize_codex(self):
        namer = FolderNamer()
        assert namer.folder_name("Oversize Ms. Codex 12", "1", None) == "oversize_mscodex12"

    def test_case_insensitive(self):
        assert (
            FolderNamer().folder_name("MS. COLL. 764", "1", None)
            == FolderNamer().folder_name("ms. coll. 764", "1", None)
        )

    def test_deterministic(self):
        args = ("Ms. Codex 1058", "123", "Ms. Codex 1057")
        assert FolderNamer().folder_name(*args) == FolderNamer().folder_name(*args)

    def test_repeated_shelfmark_gets_bibid_suffix(self):
        namer = FolderNamer()
        first = namer.folder_name("Ms. Coll. 764", "1111", None)
        second = namer.folder_name("Ms. Coll. 764", "2222", "Ms. Coll. 764")
        assert first == "mscoll764"
        assert second == "mscoll764_2222"

    def test_suffix_only_for_immediately_previous_shelfmark(self):
        namer = FolderNamer()
        assert namer.folder_name("Ms. Coll. 764", "3333", "Ms. Coll. 765") == "mscoll764"

    def test_bibid_recorded_under_base_folder(self):
        namer = FolderNamer()
        namer.folder_name("Ms. Coll. 764", "1111", None)
        namer.folder_name("Ms. Coll. 764", "2222", "Ms. Coll. 764")
        assert namer.folders == {"mscoll764": ["1111", "2222"]}

    def test_integer_bibid_accepted(self):
        namer = FolderNamer()
        assert namer.folder_name("LJS 1", 42, "LJS 1") == "ljs1_42"
        assert namer.folders == {"ljs1": ["42"]}


# ─── Diagnostics ───────────────────────────────────────────────────────────

class TestDiagnostics:
    def test_no_diagnostics_for_distinct_folders(self):
        namer = FolderNamer()
        namer.folder_name("LJS 1", "1", None)
        namer.folder_name("LJS 2", "2", "LJS 1")
        assert namer.diagnostics == []
        assert namer.shared_folders() == {}

    def test_duplicate_folder_reported(self, caplog):
        namer = FolderNamer()
        namer.folder_name("Ms. Codex 5", "1", None)
        with caplog.at_level(logging.WARNING):
            namer.folder_name("Ms.Codex 5", "2", "LJS 9")

        assert len(namer.diagnostics) == 1
        diagnostic = namer.diagnostics[0]
        assert diagnostic.kind == "duplicate_folder"
        assert diagnostic.folder == "mscodex5"
        assert diagnostic.bibids == ["1", "2"]
        assert "duplicate folder: 'mscodex5'" in caplog.text

    def test_duplicate_bibid_reported(self):
        namer = FolderNamer()
        namer.folder_name("LJS 1", "7", None)
        namer.folder_name("LJS 2", "7", "LJS 1")
        kinds = [d.kind for d in namer.diagnostics]
        assert kinds == ["duplicate_bibid"]
        assert namer.diagnostics[0].bibids == ["7"]

    def test_repeated_shelfmark_still_reported(self):
        namer = FolderNamer()
        namer.folder_name("Ms. Coll. 764", "1111", None)
        namer.folder_name("Ms. Coll. 764", "2222", "Ms. Coll. 764")
        assert [d.kind for d in namer.diagnostics] == ["duplicate_folder"]

    def test_summary_lists_shared_folders(self):
        namer = FolderNamer()
        namer.folder_name("Ms. Coll. 764", "1111", None)
        namer.folder_name("Ms. Coll. 764", "2222", "Ms. Coll. 764")
        namer.folder_name("LJS 3", "3333", "Ms. Coll. 764")

        summary = namer.summary_diagnostics()
        assert len(summary) == 1
        assert summary[0].kind == "shared_folder"
        assert summary[0].folder == "mscoll764"
        assert summary[0].message == "1111|2222"
