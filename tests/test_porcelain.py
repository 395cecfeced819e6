import pytest

from blame_nav.models import NOT_COMMITTED
from blame_nav.porcelain import parse_blame_porcelain, relative_date

from conftest import HASH_A, HASH_B, HASH_C, NOW, porcelain


# ============================================================================
# relative_date
# ============================================================================

@pytest.mark.parametrize("age, expected", [
    (0, "just now"),
    (59, "just now"),
    (60, "1 minute ago"),
    (119, "1 minute ago"),
    (120, "2 minutes ago"),
    (3599, "59 minutes ago"),
    (3600, "1 hour ago"),
    (7200, "2 hours ago"),
    (86399, "23 hours ago"),
    (86400, "1 day ago"),
    (604799, "6 days ago"),
    (604800, "1 week ago"),
    (2591999, "4 weeks ago"),
    (2592000, "1 month ago"),
    (31535999, "12 months ago"),
    (31536000, "1 year ago"),
    (2 * 31536000, "2 years ago"),
])
def test_relative_date_buckets(age, expected):
    assert relative_date(NOW - age, NOW) == expected


def test_relative_date_future_timestamp_is_just_now():
    assert relative_date(NOW + 500, NOW) == "just now"


def test_relative_date_unknown():
    assert relative_date(None, NOW) == "unknown date"


# ============================================================================
# parse_blame_porcelain
# ============================================================================

def test_single_commit_scenario(commits):
    raw = porcelain([
        (HASH_A, 1, 1, "a"),
        (HASH_A, 2, 2, "b"),
        (HASH_A, 3, 3, "c"),
    ], commits)
    records = parse_blame_porcelain(raw, now=NOW)

    assert len(records) == 3
    assert all(r.commit_hash == HASH_A for r in records)
    assert [r.final_line for r in records] == [1, 2, 3]
    first = records[0]
    assert first.short_hash == "abc123d"
    assert first.author == "Alice"
    assert first.author_mail == "alice@example.com"
    assert first.author_time == NOW - 3 * 86400
    assert first.relative_date == "3 days ago"
    assert first.summary == "Fix bug"
    assert first.filename == "src/app.py"


def test_metadata_reused_from_cache(commits):
    raw = porcelain([
        (HASH_A, 1, 1, "a"),
        (HASH_B, 1, 2, "b"),
        (HASH_A, 2, 3, "c"),
    ], commits)
    records = parse_blame_porcelain(raw, now=NOW)

    assert [r.author for r in records] == ["Alice", "Bob", "Alice"]
    assert records[2].summary == "Fix bug"
    assert records[2].relative_date == "3 days ago"
    assert records[2].orig_line == 2


def test_final_lines_are_contiguous(commits):
    lines = []
    hashes = [HASH_A, HASH_B, HASH_C]
    for n in range(1, 21):
        lines.append((hashes[n % 3], n + 7, n, f"line {n}"))
    records = parse_blame_porcelain(porcelain(lines, commits), now=NOW)
    assert [r.final_line for r in records] == list(range(1, 21))


def test_content_is_verbatim_after_first_tab(commits):
    raw = porcelain([
        (HASH_A, 1, 1, "    indented"),
        (HASH_A, 2, 2, "\tstarts with tab"),
        (HASH_A, 3, 3, ""),
    ], commits)
    records = parse_blame_porcelain(raw, now=NOW)
    assert [r.content for r in records] == ["    indented", "\tstarts with tab", ""]


def test_empty_output():
    assert parse_blame_porcelain("", now=NOW) == []
    assert parse_blame_porcelain("\n", now=NOW) == []


def test_trailing_newline_adds_no_record(commits):
    raw = porcelain([(HASH_A, 1, 1, "x")], commits)
    assert raw.endswith("\n")
    assert len(parse_blame_porcelain(raw, now=NOW)) == 1


def test_uncommitted_lines(commits):
    raw = porcelain([
        (HASH_A, 1, 1, "old"),
        (NOT_COMMITTED, 2, 2, "new"),
    ], commits)
    records = parse_blame_porcelain(raw, now=NOW)
    assert records[1].commit_hash == NOT_COMMITTED
    assert not records[1].is_committed
    assert records[1].author == "Not Committed Yet"


def test_malformed_header_carries_forward():
    raw = "\n".join([
        f"{HASH_A} 1 1 2",
        "author Alice",
        f"author-time {NOW - 60}",
        "summary Fix bug",
        "\tfirst",
        f"{HASH_A} x y",          # malformed, ignored
        "\tsecond",
        "garbage line",
        "author-time soon",       # unparseable, previous value kept
        "\tthird",
    ])
    records = parse_blame_porcelain(raw, now=NOW)
    assert [r.content for r in records] == ["first", "second", "third"]
    assert all(r.commit_hash == HASH_A for r in records)
    assert records[2].author_time == NOW - 60
    assert records[2].relative_date == "1 minute ago"


def test_content_before_any_header_is_skipped():
    raw = "\torphan\n" + f"{HASH_A} 1 1 1\nauthor A\n\tkept\n"
    records = parse_blame_porcelain(raw, now=NOW)
    assert [r.content for r in records] == ["kept"]


def test_new_commit_without_metadata_does_not_inherit_previous_author():
    raw = "\n".join([
        f"{HASH_A} 1 1 1",
        "author Alice",
        "summary Fix bug",
        "\ta",
        f"{HASH_B} 1 2 1",
        "\tb",
    ])
    records = parse_blame_porcelain(raw, now=NOW)
    assert records[1].author == ""
    assert records[1].summary == ""
    assert records[1].relative_date == "unknown date"


def test_uses_wall_clock_when_now_omitted(commits):
    raw = porcelain([(HASH_A, 1, 1, "x")], commits)
    record = parse_blame_porcelain(raw)[0]
    assert record.relative_date.endswith("ago")


def test_header_with_trailing_fields_is_read():
    raw = "\n".join([
        f"{HASH_A} 1 1 2 extra",
        "author Alice",
        "\tfirst",
        f"{HASH_B} 5 2 ",
        "author Bob",
        "\tsecond",
    ])
    records = parse_blame_porcelain(raw, now=NOW)
    assert [(r.commit_hash, r.orig_line, r.final_line) for r in records] == [
        (HASH_A, 1, 1),
        (HASH_B, 5, 2),
    ]
    assert records[1].author == "Bob"
