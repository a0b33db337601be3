"""JSON normalizer: strict parse, heuristic repair, structural transforms."""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Union

from pydantic import Field

from cleankit.cleaning.base import BaseCleaner, CleanerOptions
from cleankit.core.cancellation import check_cancelled
from cleankit.core.exceptions import FormatError
from cleankit.core.results import ValidationOutcome

if TYPE_CHECKING:
    from cleankit.core.cancellation import CancellationToken

logger = logging.getLogger(__name__)

# Closed set of shapes a parsed document can take
JSONValue = Union[None, bool, int, float, str, List["JSONValue"], Dict[str, "JSONValue"]]

_TRAILING_COMMA = re.compile(r",\s*([\]}])")
_BARE_KEY = re.compile(r"([{,]\s*)([a-zA-Z_$][a-zA-Z0-9_$]*)\s*:")
_LINE_COMMENT = re.compile(r"//.*$", re.MULTILINE)
_BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")


class JSONOptions(CleanerOptions):
    """Options for the JSON normalizer."""

    indent: int = Field(default=2, ge=0, le=10)
    sort_keys: bool = False
    remove_null: bool = False
    remove_empty: bool = False
    minify: bool = False

    # Attempt heuristic repair when the strict parse fails
    repair: bool = Field(default=True, alias="validate")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def loads_strict(text: str) -> JSONValue:
    """Parse JSON, rejecting the NaN/Infinity extensions Python accepts."""
    return json.loads(text, parse_constant=_reject_constant)


def repair_json(text: str) -> str:
    """
    Apply the fixed-order repair pipeline to malformed JSON.

    1. strip trailing commas before ``]`` / ``}``
    2. convert single quotes to double quotes
    3. quote bare identifier keys
    4. strip ``//`` and ``/* ... */`` comments

    Best effort only: step 2 also rewrites apostrophes inside strings.
    """
    fixed = _TRAILING_COMMA.sub(r"\1", text)
    fixed = fixed.replace("'", '"')
    fixed = _BARE_KEY.sub(r'\1"\2":', fixed)
    fixed = _LINE_COMMENT.sub("", fixed)
    fixed = _BLOCK_COMMENT.sub("", fixed)
    return fixed


def remove_null_values(value: JSONValue) -> JSONValue:
    """Recursively drop null object members and null array elements."""
    if isinstance(value, list):
        return [item for item in (remove_null_values(v) for v in value) if item is not None]
    if isinstance(value, dict):
        cleaned: Dict[str, JSONValue] = {}
        for key, item in value.items():
            item = remove_null_values(item)
            if item is not None:
                cleaned[key] = item
        return cleaned
    return value


def _is_empty(value: JSONValue) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return False


def remove_empty_values(value: JSONValue) -> JSONValue:
    """
    Recursively drop nulls, blank strings and empty containers.

    Children are cleaned first, so a container that only held empty values
    is removed from its parent as well.
    """
    if isinstance(value, list):
        return [item for item in (remove_empty_values(v) for v in value) if not _is_empty(item)]
    if isinstance(value, dict):
        cleaned: Dict[str, JSONValue] = {}
        for key, item in value.items():
            item = remove_empty_values(item)
            if not _is_empty(item):
                cleaned[key] = item
        return cleaned
    return value


def sort_object_keys(value: JSONValue) -> JSONValue:
    """Recursively sort object keys. Array order is never changed."""
    if isinstance(value, list):
        return [sort_object_keys(item) for item in value]
    if isinstance(value, dict):
        return {key: sort_object_keys(value[key]) for key in sorted(value)}
    return value


def dumps(value: JSONValue, indent: int = 2, minify: bool = False) -> str:
    """Serialize a document the way the normalizer renders output. Indent 0 is compact."""
    if minify or indent == 0:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return json.dumps(value, ensure_ascii=False, indent=indent)


def parse_with_repair(text: str, repair: bool = True) -> Tuple[JSONValue, bool]:
    """
    Parse JSON, trying the repair pipeline once if the strict parse fails.

    Returns:
        Tuple of (parsed value, whether repair was needed)

    Raises:
        FormatError: With the original strict-parse message when the input
            cannot be parsed even after repair
    """
    try:
        return loads_strict(text), False
    except ValueError as original:
        if not repair:
            raise FormatError(f"Invalid JSON: {original}") from original
        try:
            return loads_strict(repair_json(text)), True
        except ValueError:
            logger.debug("JSON repair attempt failed", exc_info=True)
            raise FormatError(f"Invalid JSON: {original}") from original


def validate_json(text: str) -> ValidationOutcome:
    """Strict validation, no repair. Never raises."""
    try:
        loads_strict(text)
    except ValueError as e:
        return ValidationOutcome.failed(str(e))
    return ValidationOutcome.ok()


def minify_json(text: str) -> str:
    """Compact valid JSON; collapse whitespace if it does not parse."""
    try:
        return dumps(loads_strict(text), minify=True)
    except ValueError:
        return re.sub(r"\s+", " ", text).strip()


def prettify_json(text: str, indent: int = 2) -> str:
    """Indent JSON, repairing it first if needed; unparseable input comes back as-is."""
    try:
        value, _ = parse_with_repair(text)
    except FormatError:
        return text
    return dumps(value, indent=indent)


class JSONNormalizer(BaseCleaner):
    """
    Format, validate and clean JSON data.

    Transforms are applied in a fixed order: null removal, empty removal,
    key sorting. Number literals are re-rendered with Python's default
    formatting, so ``1.50`` comes back as ``1.5``.
    """

    name = "JSON Normalizer"
    description = "Format, validate, and clean JSON data"
    supported_extensions = (".json", ".jsonld", ".geojson")
    options_model = JSONOptions

    def _process(
        self,
        text: str,
        options: JSONOptions,
        cancel_token: Optional[CancellationToken],
    ) -> Tuple[str, Dict[str, Any]]:
        parsed, repaired = parse_with_repair(text, repair=options.repair)
        check_cancelled(cancel_token)

        if options.remove_null:
            parsed = remove_null_values(parsed)
        if options.remove_empty:
            parsed = remove_empty_values(parsed)
        if options.sort_keys:
            parsed = sort_object_keys(parsed)
        check_cancelled(cancel_token)

        output = dumps(parsed, indent=options.indent, minify=options.minify)

        return output, {
            "is_valid": True,
            "repaired": repaired,
            "size": len(output),
            "is_minified": options.minify,
            "indentation": 0 if options.minify else options.indent,
        }
