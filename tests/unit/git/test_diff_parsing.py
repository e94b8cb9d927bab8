"""Parsers for git diff output."""
from __future__ import annotations

from prove.core.git import ChangedLine, DiffStats
from prove.core.git.diff import group_by_file, parse_name_only, parse_shortstat, parse_unified_zero

UNIFIED_ZERO = """\
diff --git a/src/cart.py b/src/cart.py
index 1111111..2222222 100644
--- a/src/cart.py
+++ b/src/cart.py
@@ -3,0 +4,2 @@ def total(items):
+    discount = 0
+    return sum(items) - discount
@@ -10 +12 @@ def clear():
-    pass
+    items.clear()
diff --git a/old.py b/old.py
deleted file mode 100644
--- a/old.py
+++ /dev/null
@@ -1,3 +0,0 @@
-a
-b
-c
diff --git a/docs/a.md b/docs/b.md
similarity index 100%
rename from docs/a.md
rename to docs/b.md
diff --git a/tests/test_cart.py b/tests/test_cart.py
new file mode 100644
--- /dev/null
+++ b/tests/test_cart.py
@@ -0,0 +1,3 @@
+def test_total():
+    assert total([1]) == 1
+
"""


def test_unified_zero_collects_added_lines() -> None:
    lines = parse_unified_zero(UNIFIED_ZERO)

    assert group_by_file(lines) == {
        "src/cart.py": [4, 5, 12],
        "tests/test_cart.py": [1, 2, 3],
    }


def test_deleted_file_and_pure_rename_contribute_nothing() -> None:
    paths = {entry.path for entry in parse_unified_zero(UNIFIED_ZERO)}

    assert "old.py" not in paths
    assert "docs/b.md" not in paths


def test_pure_deletion_hunk_has_zero_count() -> None:
    output = "+++ b/src/a.py\n@@ -5,2 +4,0 @@\n-x\n-y\n"

    assert parse_unified_zero(output) == []


def test_hunk_without_count_means_one_line() -> None:
    output = "+++ b/src/a.py\n@@ -1 +7 @@\n-x\n+y\n"

    assert parse_unified_zero(output) == [ChangedLine("src/a.py", 7)]


def test_empty_output() -> None:
    assert parse_unified_zero("") == []
    assert parse_name_only("") == []
    assert parse_shortstat("") == DiffStats()


def test_name_only_deduplicates_and_keeps_order() -> None:
    output = "src/b.py\nsrc/a.py\n\nsrc/b.py\n  tests/test_a.py  \n"

    assert parse_name_only(output) == ["src/b.py", "src/a.py", "tests/test_a.py"]


def test_shortstat_variants() -> None:
    stats = parse_shortstat(" 3 files changed, 120 insertions(+), 7 deletions(-)\n")
    assert (stats.files_changed, stats.added, stats.deleted, stats.total) == (3, 120, 7, 127)

    only_added = parse_shortstat(" 1 file changed, 1 insertion(+)")
    assert only_added.to_dict() == {"filesChanged": 1, "added": 1, "deleted": 0, "total": 1}

    only_deleted = parse_shortstat(" 1 file changed, 4 deletions(-)")
    assert only_deleted.total == 4
