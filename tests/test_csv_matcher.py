"""Tests for the bulk earnings CSV preview."""
from decimal import Decimal

import pytest

from label_settlement.core.errors import ValidationError
from label_settlement.services.csv_matcher import (
    CsvEarningsMatcher,
    detect_delimiter,
    normalize_header,
    parse_amount,
    unique_headers,
)

D = Decimal


@pytest.fixture
def releases(store):
    brand = store.add_brand()
    return [
        store.add_release(brand, "First Light", catalog_no="FL-001"),
        store.add_release(brand, "Night Drive", catalog_no="ND-002"),
        store.add_release(brand, "Café", catalog_no=None),
    ]


def test_normalize_header():
    assert normalize_header("  Cat. No ") == "cat no"
    assert normalize_header("Earning_Amount") == "earning amount"
    assert normalize_header("") == ""


def test_map_columns_with_punctuation_and_unknown_headers():
    mapping = CsvEarningsMatcher().map_columns(["Cat. No", "Release Title", "Revenue ($)", "Notes"])

    assert mapping == {
        "catalog_no": "Cat. No",
        "release_title": "Release Title",
        "earning_amount": "Revenue ($)",
    }


@pytest.mark.parametrize("raw,expected", [
    ("$1,234.50", D("1234.50")),
    ("12.345", D("12.35")),
    ("-3", D("-3.00")),
    ("n/a", None),
    ("--", None),
    ("9" * 40, None),
    (None, None),
])
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


def test_matches_by_catalog_then_title(releases):
    content = (
        "Catalog Number,Title,Earnings\n"
        "fl-001,Wrong Title,100.00\n"
        ",Night Drive,50.50\n"
        ",Unknown,10.00\n"
    ).encode()

    preview = CsvEarningsMatcher().preview(content, releases)

    first, second, third = preview.rows
    assert first.matched_release is releases[0]
    assert first.match_method == "catalog_no"
    assert first.match_score == 100
    assert second.matched_release is releases[1]
    assert second.match_method == "release_title"
    assert third.matched_release is None
    assert third.match_score is None
    assert preview.summary.total_rows == 3
    assert preview.summary.total_matched == 2
    assert preview.summary.total_unmatched == 1
    assert preview.summary.total_earning_amount == D("150.50")
    assert first.original_data == {"Catalog Number": "fl-001", "Title": "Wrong Title", "Earnings": "100.00"}


def test_catalog_miss_does_not_fall_back_to_title(releases):
    content = b"Catalog No,Release Title,Amount\nXX-999,First Light,10.00\n"

    preview = CsvEarningsMatcher().preview(content, releases)

    assert preview.rows[0].matched_release is None
    assert preview.summary.total_unmatched == 1


def test_duplicate_titles_are_unmatched(store):
    brand = store.add_brand()
    releases = [store.add_release(brand, "Echoes"), store.add_release(brand, "Echoes")]

    preview = CsvEarningsMatcher().preview(b"Title,Amount\nEchoes,10.00\n", releases)

    assert preview.rows[0].matched_release is None


def test_duplicate_catalog_numbers_take_the_first(store):
    brand = store.add_brand()
    first = store.add_release(brand, "One", catalog_no="DUP-1")
    store.add_release(brand, "Two", catalog_no="DUP-1")

    preview = CsvEarningsMatcher().preview(b"Catalog No,Amount\nDUP-1,10.00\n", list(store.releases.values()))

    assert preview.rows[0].matched_release is first


def test_rows_without_parsable_amount_are_skipped(releases):
    content = b"Catalog No,Amount\nFL-001,n/a\n\nND-002,5.00\n"

    preview = CsvEarningsMatcher().preview(content, releases)

    assert [row.catalog_no for row in preview.rows] == ["ND-002"]
    assert preview.summary.total_rows == 1


def test_semicolon_delimited_file(releases):
    content = b"Catalog No;Amount\nFL-001;12.50\nND-002;7.50\n"

    preview = CsvEarningsMatcher().preview(content, releases)

    assert preview.summary.total_matched == 2
    assert preview.summary.total_earning_amount == D("20.00")


def test_detect_delimiter():
    assert detect_delimiter("a\tb\n1\t2\n") == "\t"
    assert detect_delimiter("a|b\n1|2\n") == "|"


def test_utf8_bom_is_stripped(releases):
    content = b"\xef\xbb\xbfCatalog No,Amount\r\nFL-001,10.00\r\n"

    preview = CsvEarningsMatcher().preview(content, releases)

    assert preview.summary.column_mapping["catalog_no"] == "Catalog No"
    assert preview.rows[0].matched_release is releases[0]


def test_latin1_file_is_decoded(releases):
    content = "Title,Amount\nCafé,5.00\n".encode("latin-1")

    preview = CsvEarningsMatcher().preview(content, releases)

    assert preview.rows[0].matched_release is releases[2]


@pytest.mark.parametrize("content", [b"", b"  \n "])
def test_empty_file_is_rejected(content, releases):
    with pytest.raises(ValidationError):
        CsvEarningsMatcher().preview(content, releases)


def test_missing_amount_column_is_rejected(releases):
    with pytest.raises(ValidationError, match="amount column"):
        CsvEarningsMatcher().preview(b"Title,Notes\nFirst Light,hello\n", releases)


def test_amount_too_large_for_the_column_is_skipped(releases):
    content = ("Catalog No,Amount\nFL-001," + "9" * 40 + "\nND-002,5.00\n").encode()

    preview = CsvEarningsMatcher().preview(content, releases)

    assert [row.catalog_no for row in preview.rows] == ["ND-002"]
    assert preview.summary.total_earning_amount == D("5.00")


def test_unique_headers():
    assert unique_headers(["Amount", "Title", "Amount", "", "Amount"]) == [
        "Amount", "Title", "Amount (2)", "Column 4", "Amount (3)",
    ]


def test_repeated_headers_keep_every_column(releases):
    content = b"Catalog No,Amount,Amount\nFL-001,12.00,99.00\n"

    preview = CsvEarningsMatcher().preview(content, releases)

    row = preview.rows[0]
    assert row.earning_amount == D("12.00")
    assert row.original_data == {"Catalog No": "FL-001", "Amount": "12.00", "Amount (2)": "99.00"}
    assert preview.summary.column_mapping["earning_amount"] == "Amount"


def test_amount_is_read_from_the_mapped_position(releases):
    content = b"Notes,Amount,Amount\nbonus,,7.25\n"
    matcher = CsvEarningsMatcher()

    assert matcher.map_column_positions(["Notes", "Amount", "Amount"])["earning_amount"] == 1
    assert matcher.preview(content, releases).rows == []
