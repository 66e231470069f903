"""
Bulk earnings CSV preview.

Maps free-text headers to canonical fields by fuzzy matching against known
synonyms, then resolves each row to a release by exact catalog number or
exact title. Nothing is written; matched rows are expected to be submitted
one by one through EarningIngestor.ingest().
"""

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Sequence

from rapidfuzz import fuzz

from label_settlement.core.config import settings
from label_settlement.core.errors import ValidationError
from label_settlement.core.money import MAX_AMOUNT, ZERO, to_money
from label_settlement.models.release import Release

logger = logging.getLogger(__name__)

CATALOG_NO = "catalog_no"
RELEASE_TITLE = "release_title"
EARNING_AMOUNT = "earning_amount"

# Canonical field -> known header spellings (already normalized)
FIELD_SYNONYMS: Dict[str, List[str]] = {
    CATALOG_NO: [
        "catalog no",
        "catalog number",
        "catalogue no",
        "catalogue number",
        "catalog",
        "cat no",
        "cat number",
        "catalog id",
    ],
    RELEASE_TITLE: [
        "release title",
        "release",
        "release name",
        "title",
        "album",
        "album title",
        "product title",
    ],
    EARNING_AMOUNT: [
        "earning amount",
        "earnings",
        "amount",
        "revenue",
        "net revenue",
        "royalty",
        "total amount",
        "payout",
    ],
}

CANDIDATE_DELIMITERS = ",;\t|"

MATCH_BY_CATALOG_NO = "catalog_no"
MATCH_BY_RELEASE_TITLE = "release_title"


@dataclass
class MatchedRow:
    """One parsed CSV row and the release it resolved to."""
    original_data: Dict[str, str]
    catalog_no: Optional[str]
    release_title: Optional[str]
    earning_amount: Decimal
    matched_release: Optional[Release] = None
    match_score: Optional[int] = None
    match_method: Optional[str] = None


@dataclass
class CsvPreviewSummary:
    total_rows: int = 0
    total_matched: int = 0
    total_unmatched: int = 0
    total_earning_amount: Decimal = ZERO
    column_mapping: Dict[str, Optional[str]] = field(default_factory=dict)


@dataclass
class CsvPreview:
    rows: List[MatchedRow] = field(default_factory=list)
    summary: CsvPreviewSummary = field(default_factory=CsvPreviewSummary)


def normalize_header(header: str) -> str:
    """Lowercase, punctuation to spaces, collapsed whitespace."""
    if not header:
        return ""
    text = header.lower()
    text = re.sub(r"[^\w\s]", " ", text)
    text = text.replace("_", " ")
    return re.sub(r"\s+", " ", text).strip()


def unique_headers(headers: Sequence[str]) -> List[str]:
    """
    Row keys for original_data: repeated names get a " (2)", " (3)" suffix,
    blank names become "Column N".
    """
    keys = []
    seen: Dict[str, int] = {}
    for position, header in enumerate(headers, start=1):
        key = header or f"Column {position}"
        seen[key] = seen.get(key, 0) + 1
        if seen[key] > 1:
            key = f"{key} ({seen[key]})"
        keys.append(key)
    return keys


def _cell(values: Sequence[str], index: Dict[str, Optional[int]], name: str) -> Optional[str]:
    position = index.get(name)
    if position is None or position >= len(values):
        return None
    return values[position].strip() or None


def _fold(value: Optional[str]) -> str:
    return (value or "").strip().casefold()


def decode_csv(content: bytes) -> str:
    """Decode UTF-8 (with or without BOM), falling back to latin-1."""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def detect_delimiter(text: str) -> str:
    """Pick the delimiter of the header line among , ; tab and |."""
    sample = "\n".join(text.splitlines()[:5])
    try:
        return csv.Sniffer().sniff(sample, delimiters=CANDIDATE_DELIMITERS).delimiter
    except csv.Error:
        header = text.splitlines()[0] if text else ""
        return max(CANDIDATE_DELIMITERS, key=header.count) if header else ","


def parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """Keep digits, '.' and '-' only. None when nothing parsable is left."""
    cleaned = re.sub(r"[^0-9.\-]", "", raw or "")
    if not cleaned:
        return None
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite() or abs(amount) > MAX_AMOUNT:
        return None
    return to_money(amount)


class CsvEarningsMatcher:
    """Previews a bulk earnings CSV against a brand's releases."""

    def __init__(self, threshold: Optional[int] = None):
        self.threshold = settings.CSV_HEADER_MATCH_THRESHOLD if threshold is None else threshold

    def map_columns(self, headers: Sequence[str]) -> Dict[str, Optional[str]]:
        """Map each canonical field to the name of its best scoring header."""
        return {
            name: headers[position] if position is not None else None
            for name, position in self.map_column_positions(headers).items()
        }

    def map_column_positions(self, headers: Sequence[str]) -> Dict[str, Optional[int]]:
        """
        Map each canonical field to the position of its best scoring header.

        Candidates are assigned from the highest score down, so a column
        claimed by one field is not reused by another. Positions keep
        repeated header names apart.
        """
        candidates = []
        for field_order, (field_name, synonyms) in enumerate(FIELD_SYNONYMS.items()):
            for header_order, header in enumerate(headers):
                normalized = normalize_header(header)
                if not normalized:
                    continue
                score = max(fuzz.ratio(normalized, synonym) for synonym in synonyms)
                if score >= self.threshold:
                    candidates.append((-score, field_order, header_order, field_name, header))

        mapping: Dict[str, Optional[int]] = {name: None for name in FIELD_SYNONYMS}
        claimed = set()
        for _, _, header_order, field_name, _ in sorted(candidates):
            if mapping[field_name] is not None or header_order in claimed:
                continue
            mapping[field_name] = header_order
            claimed.add(header_order)

        logger.debug(f"CSV column mapping: {mapping}")
        return mapping

    def resolve(
        self,
        catalog_no: Optional[str],
        release_title: Optional[str],
        releases: Sequence[Release],
    ) -> tuple[Optional[Release], Optional[str]]:
        """
        Exact release resolution.

        Catalog number first, with no fallback to the title when it misses;
        several catalog matches take the first one. A title must match
        exactly one release.
        """
        wanted_catalog = _fold(catalog_no)
        if wanted_catalog:
            matches = [r for r in releases if _fold(r.catalog_no) == wanted_catalog]
            if not matches:
                return None, None
            if len(matches) > 1:
                logger.warning(
                    f"Catalog number {catalog_no!r} matches {len(matches)} releases, using the first"
                )
            return matches[0], MATCH_BY_CATALOG_NO

        wanted_title = _fold(release_title)
        if wanted_title:
            matches = [r for r in releases if _fold(r.title) == wanted_title]
            if len(matches) == 1:
                return matches[0], MATCH_BY_RELEASE_TITLE
        return None, None

    def preview(self, file_bytes: bytes, releases: Sequence[Release]) -> CsvPreview:
        """
        Parse a CSV upload and match its rows to releases.

        Raises:
            ValidationError: Empty file, no header row, or no amount column
        """
        if not file_bytes or not file_bytes.strip():
            raise ValidationError("CSV file is empty")

        text = decode_csv(file_bytes)
        delimiter = detect_delimiter(text)
        reader = csv.reader(io.StringIO(text), delimiter=delimiter)

        try:
            headers = [h.strip() for h in next(reader)]
        except StopIteration:
            raise ValidationError("CSV file has no header row")
        except csv.Error as e:
            raise ValidationError(f"Malformed CSV file: {e}")
        if not any(headers):
            raise ValidationError("CSV file has no header row")

        index = self.map_column_positions(headers)
        if index[EARNING_AMOUNT] is None:
            raise ValidationError("Could not find an earning amount column in the CSV file")

        keys = unique_headers(headers)
        result = CsvPreview()
        result.summary.column_mapping = {
            name: keys[position] if position is not None else None
            for name, position in index.items()
        }

        try:
            for values in reader:
                if not any(v.strip() for v in values):
                    continue

                amount = parse_amount(_cell(values, index, EARNING_AMOUNT))
                if amount is None:
                    continue

                row = MatchedRow(
                    original_data={
                        key: values[i] if i < len(values) else ""
                        for i, key in enumerate(keys)
                    },
                    catalog_no=_cell(values, index, CATALOG_NO),
                    release_title=_cell(values, index, RELEASE_TITLE),
                    earning_amount=amount,
                )
                release, method = self.resolve(row.catalog_no, row.release_title, releases)
                if release is not None:
                    row.matched_release = release
                    row.match_score = 100
                    row.match_method = method
                    result.summary.total_matched += 1
                    result.summary.total_earning_amount += amount
                else:
                    result.summary.total_unmatched += 1

                result.rows.append(row)
        except csv.Error as e:
            raise ValidationError(f"Malformed CSV file: {e}")

        result.summary.total_rows = len(result.rows)
        logger.info(
            f"CSV preview: {result.summary.total_rows} rows, "
            f"{result.summary.total_matched} matched, {result.summary.total_unmatched} unmatched"
        )
        return result
