"""Tests for the CSV cleaner."""

from __future__ import annotations

import pytest

from cleankit.cleaning.csv_cleaner import (
    CSVCleaner,
    CSVOptions,
    count_columns,
    parse_csv,
    serialize_csv,
    serialize_field,
    validate_csv,
)
from cleankit.core.cancellation import CancellationToken
from cleankit.core.exceptions import FormatError, OperationCancelled, ValidationError


class TestParseCSV:
    def test_simple_rows(self):
        assert parse_csv("a,b\n1,2") == [["a", "b"], ["1", "2"]]

    def test_trailing_newline_adds_no_row(self):
        assert parse_csv("a,b\n1,2\n") == [["a", "b"], ["1", "2"]]

    def test_trailing_delimiter_keeps_empty_field(self):
        assert parse_csv("a,b,") == [["a", "b", ""]]

    def test_doubled_quote_is_literal(self):
        assert parse_csv('"a ""b"" c",d') == [['a "b" c', "d"]]

    def test_quoted_field_spans_lines(self):
        assert parse_csv('x,"line one\nline two"\n1,2') == [
            ["x", "line one\nline two"],
            ["1", "2"],
        ]

    def test_unclosed_quote_runs_to_end(self):
        assert parse_csv('"abc,def\nghi') == [["abc,def\nghi"]]

    def test_empty_quoted_field_is_emitted(self):
        assert parse_csv('""') == [[""]]

    def test_quotes_literal_when_disabled(self):
        assert parse_csv('"a",b', quote_strings=False) == [['"a"', "b"]]

    def test_custom_delimiter(self):
        assert parse_csv("a;b\n1;2", delimiter=";") == [["a", "b"], ["1", "2"]]

    def test_cancelled_token_stops_scan(self):
        token = CancellationToken()
        token.cancel("deadline exceeded")
        with pytest.raises(OperationCancelled, match="deadline exceeded"):
            parse_csv("a,b\n1,2", cancel_token=token)


class TestSerializeCSV:
    def test_plain_fields_unquoted(self):
        assert serialize_field("abc") == "abc"

    @pytest.mark.parametrize("value", ["a,b", 'say "hi"', "two\nlines", "cr\rhere"])
    def test_special_fields_quoted(self, value):
        rendered = serialize_field(value)
        assert rendered.startswith('"') and rendered.endswith('"')

    def test_embedded_quotes_doubled(self):
        assert serialize_field('say "hi"') == '"say ""hi"""'

    def test_none_renders_empty(self):
        assert serialize_field(None) == ""

    def test_rows_joined_without_trailing_newline(self):
        assert serialize_csv([["a", "b"], ["1", "2"]]) == "a,b\n1,2"

    def test_matrix_survives_serialize_then_parse(self):
        matrix = [["name", "age", "city"], ["alice", "30", "Paris"], ["bob", "41", "Oslo"]]
        assert parse_csv(serialize_csv(matrix)) == matrix

    def test_special_field_survives_serialize_then_parse(self):
        tricky = 'he said "hi", then\nleft'
        rows = [["id", "note"], ["1", tricky]]
        assert parse_csv(serialize_csv(rows)) == rows


class TestValidateCSV:
    def test_short_row_reported(self):
        outcome = validate_csv("a,b,c\n1,2\n")
        assert not outcome.valid
        assert outcome.column_count == 3
        assert outcome.error == "Row 2 has 2 columns, expected 3"

    def test_valid_input(self):
        outcome = validate_csv("a,b\n1,2\n3,4")
        assert outcome.valid
        assert outcome.row_count == 3
        assert outcome.column_count == 2

    def test_blank_rows_skipped_but_numbered(self):
        outcome = validate_csv("a,b\n\n1,2,3")
        assert outcome.error == "Row 3 has 3 columns, expected 2"

    def test_empty_input(self):
        assert validate_csv("   ").error == "Empty CSV"

    def test_quoted_delimiters_not_counted(self):
        assert count_columns('"a,b",c') == 2
        assert validate_csv('x,y\n"1,5",2').valid

    def test_quoted_newline_not_a_record_break(self):
        assert validate_csv('a,b\n"x\ny",2').valid


class TestCSVCleaner:
    def test_cleans_messy_input(self):
        cleaner = CSVCleaner()
        result = cleaner.process("name , age\r\n alice, 30 \r\n\r\nbob,41\n")

        assert result.output == "name,age\nalice,30\nbob,41"
        assert result.metadata["row_count"] == 3
        assert result.metadata["data_row_count"] == 2
        assert result.metadata["column_count"] == 2
        assert result.metadata["header"] == ["name", "age"]
        assert result.metadata["validation"]["valid"] is True
        assert result.processing_time >= 0

    def test_strict_mismatch_raises(self):
        with pytest.raises(FormatError, match="Row 2 has 2 columns, expected 3"):
            CSVCleaner().process("a,b,c\n1,2\n")

    def test_lenient_mismatch_reported_in_metadata(self):
        result = CSVCleaner().process("a,b,c\n1,2\n", {"strict": False})
        assert result.output == "a,b,c\n1,2"
        assert result.metadata["validation"]["valid"] is False

    def test_requotes_fields_that_need_it(self):
        result = CSVCleaner().process('a,b\n"x, y","plain"')
        assert result.output == 'a,b\n"x, y",plain'

    def test_keeps_empty_rows_when_asked(self):
        result = CSVCleaner().process("a,b\n,\n1,2", {"remove_empty_rows": False})
        assert result.output == "a,b\n,\n1,2"

    def test_no_header(self):
        result = CSVCleaner().process("1,2\n3,4", {"has_header": False})
        assert result.metadata["header"] is None
        assert result.metadata["data_row_count"] == 2

    def test_camel_case_options(self):
        result = CSVCleaner().process("a;b\n1;2", {"delimiter": ";", "trimFields": False})
        assert result.output == "a;b\n1;2"
        assert result.metadata["options"]["trim_fields"] is False

    def test_constructor_defaults(self):
        cleaner = CSVCleaner(delimiter="\t")
        assert cleaner.default_options["delimiter"] == "\t"
        assert cleaner.process("a\tb\n1\t2").output == "a\tb\n1\t2"

    def test_default_options_are_a_copy(self):
        cleaner = CSVCleaner()
        cleaner.default_options["delimiter"] = ";"
        assert cleaner.default_options["delimiter"] == ","

    def test_options_model_accepted(self):
        result = CSVCleaner().process("a|b", CSVOptions(delimiter="|"))
        assert result.metadata["delimiter"] == "|"

    def test_invalid_delimiter_rejected(self):
        with pytest.raises(ValidationError, match="Invalid options"):
            CSVCleaner().process("a,b", {"delimiter": ";;"})

    def test_unknown_option_rejected(self):
        with pytest.raises(ValidationError):
            CSVCleaner().process("a,b", {"no_such_option": True})
