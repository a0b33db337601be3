"""CSV cleaner: quote-aware tokenizer, validator and re-serializer."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import Field

from cleankit.cleaning.base import BaseCleaner, CleanerOptions
from cleankit.core.cancellation import check_cancelled
from cleankit.core.exceptions import FormatError
from cleankit.core.results import ValidationOutcome

if TYPE_CHECKING:
    from cleankit.core.cancellation import CancellationToken

logger = logging.getLogger(__name__)

QUOTE = '"'

# Characters scanned between cancellation polls
_POLL_INTERVAL = 4096

_LINE_ENDINGS = re.compile(r"\r\n|\r")


class CSVOptions(CleanerOptions):
    """Options for the CSV cleaner."""

    delimiter: str = Field(default=",", min_length=1, max_length=1)
    has_header: bool = True
    trim_fields: bool = True
    remove_empty_rows: bool = True
    quote_strings: bool = True
    normalize_line_endings: bool = True

    # Treat a column-count mismatch as fatal
    strict: bool = True


def parse_csv(
    text: str,
    delimiter: str = ",",
    quote_strings: bool = True,
    cancel_token: Optional[CancellationToken] = None,
) -> List[List[str]]:
    """
    Split delimited text into rows of fields.

    Single left-to-right scan. A quote toggles the in-quotes state, except a
    doubled quote inside quotes, which is a literal ``"``. The delimiter and
    ``\\n`` only separate outside quotes, so quoted fields may span lines.
    An unclosed quote runs to end of input. Trailing content without a final
    newline is still emitted as a row.

    Args:
        text: Delimited text (line endings already normalized)
        delimiter: Single-character field separator
        quote_strings: When False, quotes are ordinary characters
        cancel_token: Polled every few thousand characters

    Returns:
        List of rows, each a list of raw (untrimmed) field strings
    """
    rows: List[List[str]] = []
    row: List[str] = []
    field: List[str] = []
    inside_quotes = False
    quoted = False

    i = 0
    length = len(text)
    while i < length:
        if i % _POLL_INTERVAL == 0:
            check_cancelled(cancel_token)

        char = text[i]
        if char == QUOTE and quote_strings:
            if inside_quotes and i + 1 < length and text[i + 1] == QUOTE:
                field.append(QUOTE)
                i += 1
            else:
                inside_quotes = not inside_quotes
                quoted = True
        elif char == delimiter and not inside_quotes:
            row.append("".join(field))
            field = []
            quoted = False
        elif char == "\n" and not inside_quotes:
            row.append("".join(field))
            rows.append(row)
            row = []
            field = []
            quoted = False
        else:
            field.append(char)
        i += 1

    if field or row or quoted:
        row.append("".join(field))
        rows.append(row)

    return rows


def count_columns(line: str, delimiter: str = ",", quote_strings: bool = True) -> int:
    """Count fields in one record using the same quoting rules as parse_csv."""
    count = 0
    inside_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == QUOTE and quote_strings:
            if inside_quotes and i + 1 < len(line) and line[i + 1] == QUOTE:
                i += 1
            else:
                inside_quotes = not inside_quotes
        elif char == delimiter and not inside_quotes:
            count += 1
        i += 1
    return count + 1


def _split_records(text: str, quote_strings: bool) -> List[str]:
    """Split text into raw records on newlines that are outside quotes."""
    records: List[str] = []
    start = 0
    inside_quotes = False
    for i, char in enumerate(text):
        if char == QUOTE and quote_strings:
            inside_quotes = not inside_quotes
        elif char == "\n" and not inside_quotes:
            records.append(text[start:i])
            start = i + 1
    if start < len(text):
        records.append(text[start:])
    return records


def validate_csv(
    text: str,
    delimiter: str = ",",
    quote_strings: bool = True,
) -> ValidationOutcome:
    """
    Check that every row has as many columns as the first one.

    Blank rows are skipped but still counted for row numbering. Never raises.

    Returns:
        ValidationOutcome; on mismatch ``error`` reads
        ``"Row N has X columns, expected Y"`` with 1-based N.
    """
    if not text or not text.strip():
        return ValidationOutcome.failed("Empty CSV")

    # Doubled quotes toggle twice, so a plain toggle is enough to find record ends
    records = _split_records(text, quote_strings)
    expected = count_columns(records[0], delimiter, quote_strings)

    for number, record in enumerate(records[1:], start=2):
        if record.strip() == "":
            continue
        columns = count_columns(record, delimiter, quote_strings)
        if columns != expected:
            return ValidationOutcome.failed(
                f"Row {number} has {columns} columns, expected {expected}",
                row_count=len(records),
                column_count=expected,
            )

    return ValidationOutcome.ok(row_count=len(records), column_count=expected)


def _needs_quotes(value: str, delimiter: str) -> bool:
    return delimiter in value or QUOTE in value or "\n" in value or "\r" in value


def serialize_field(value: Any, delimiter: str = ",", quote_strings: bool = True) -> str:
    """Render one field, quoting it only when it has to be."""
    text = "" if value is None else str(value)
    if quote_strings and _needs_quotes(text, delimiter):
        return QUOTE + text.replace(QUOTE, QUOTE * 2) + QUOTE
    return text


def serialize_csv(
    rows: Iterable[Sequence[Any]],
    delimiter: str = ",",
    quote_strings: bool = True,
) -> str:
    """
    Render rows back to delimited text.

    A field is quoted iff it contains the delimiter, a quote or a newline;
    embedded quotes are doubled. Rows are joined with ``\\n`` and no trailing
    newline is added.
    """
    return "\n".join(
        delimiter.join(serialize_field(value, delimiter, quote_strings) for value in row)
        for row in rows
    )


class CSVCleaner(BaseCleaner):
    """
    Clean, format and validate CSV data.

    Pipeline: normalize line endings, validate column counts, parse, trim
    fields, drop blank rows, re-serialize with minimal quoting.
    """

    name = "CSV Cleaner"
    description = "Clean, format, and validate CSV data"
    supported_extensions = (".csv", ".tsv")
    options_model = CSVOptions

    def _process(
        self,
        text: str,
        options: CSVOptions,
        cancel_token: Optional[CancellationToken],
    ) -> Tuple[str, Dict[str, Any]]:
        processed = text
        if options.normalize_line_endings:
            processed = _LINE_ENDINGS.sub("\n", processed)

        validation = validate_csv(processed, options.delimiter, options.quote_strings)
        if not validation.valid:
            if options.strict:
                raise FormatError(f"Invalid CSV: {validation.error}")
            logger.debug(f"Continuing with inconsistent CSV: {validation.error}")

        rows = parse_csv(
            processed,
            delimiter=options.delimiter,
            quote_strings=options.quote_strings,
            cancel_token=cancel_token,
        )
        rows = self._transform_rows(rows, options)

        output = serialize_csv(rows, options.delimiter, options.quote_strings)

        header: Optional[List[str]] = rows[0] if (options.has_header and rows) else None
        data_rows = len(rows) - 1 if header is not None else len(rows)

        return output, {
            "row_count": len(rows),
            "data_row_count": data_rows,
            "column_count": len(rows[0]) if rows else 0,
            "header": header,
            "delimiter": options.delimiter,
            "validation": validation.to_dict(),
        }

    @staticmethod
    def _transform_rows(rows: List[List[str]], options: CSVOptions) -> List[List[str]]:
        if options.trim_fields:
            rows = [[value.strip() for value in row] for row in rows]
        if options.remove_empty_rows:
            rows = [row for row in rows if any(value.strip() for value in row)]
        return rows
