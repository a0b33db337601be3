"""Code formatter: whitespace and line normalization with language detection."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from pydantic import Field

from cleankit.cleaning.base import BaseCleaner, CleanerOptions
from cleankit.core.cancellation import check_cancelled

if TYPE_CHECKING:
    from cleankit.core.cancellation import CancellationToken

_LINE_ENDINGS = re.compile(r"\r\n|\r")
_TRAILING_WHITESPACE = re.compile(r"[ \t]+$", re.MULTILINE)
_LEADING_WHITESPACE = re.compile(r"^[ \t]+", re.MULTILINE)


class CodeOptions(CleanerOptions):
    """Options for the code formatter."""

    indent_size: int = Field(default=2, ge=1, le=16)
    use_tabs: bool = False
    trim_trailing_whitespace: bool = True
    insert_final_newline: bool = True
    normalize_line_endings: bool = True
    language: str = "auto"

    # 0 disables wrapping
    max_line_length: int = Field(default=80, ge=0)


def _looks_like_json(code: str) -> bool:
    stripped = code.strip()
    if not stripped or stripped[0] not in "[{":
        return False
    try:
        json.loads(stripped)
    except ValueError:
        return False
    return True


# Selector line, then a block holding a "prop: value" pair. Each class
# excludes the character that ends it, so matching stays linear.
_CSS_RULE = re.compile(r"^[ \t]*[.#]?[A-Za-z_][^{}\n]*\{[^{}:]*:[^{}]*\}", re.MULTILINE)


# Ordered signature checks; the first match wins
_LANGUAGE_SIGNATURES: List[Tuple[str, Callable[[str], bool]]] = [
    ("php", lambda code: "<?php" in code),
    ("html", lambda code: bool(re.search(r"<html|<!DOCTYPE", code, re.IGNORECASE))),
    (
        "javascript",
        lambda code: bool(
            re.search(
                r"import\s+React|function\s+\w+\s*\(|(?:const|let|var)\s+\w+\s*=|=>",
                code,
            )
        ),
    ),
    ("python", lambda code: bool(re.search(r"def\s+\w+\(|class\s+\w+(\(.*\))?:", code))),
    ("java", lambda code: bool(re.search(r"public\s+class|// Java", code))),
    ("cpp", lambda code: bool(re.search(r"#include|int\s+main\s*\(", code))),
    ("css", lambda code: bool(_CSS_RULE.search(code))),
    ("json", _looks_like_json),
]


def detect_language(code: str) -> str:
    """
    Guess the language of a snippet.

    Returns:
        One of php, html, javascript, python, java, cpp, css, json, or plain
    """
    for language, matches in _LANGUAGE_SIGNATURES:
        if matches(code):
            return language
    return "plain"


def _retab_leading(code: str, indent_size: int, use_tabs: bool) -> str:
    spaces = " " * indent_size

    def _convert(match: "re.Match[str]") -> str:
        leading = match.group(0)
        if use_tabs:
            return leading.replace(spaces, "\t")
        return leading.replace("\t", spaces)

    return _LEADING_WHITESPACE.sub(_convert, code)


def _format_python(code: str, indent_size: int) -> str:
    """Snap leading spaces down to a multiple of the indent size."""
    lines = []
    for line in code.split("\n"):
        stripped = line.lstrip(" ")
        leading = len(line) - len(stripped)
        lines.append(" " * ((leading // indent_size) * indent_size) + stripped)
    return "\n".join(lines)


_LANGUAGE_FORMATTERS: Dict[str, Callable[[str, int], str]] = {
    "python": _format_python,
}

# Language-specific break characters and whether to break after them
_BREAK_AFTER = {",": True, " ": False}
_LANGUAGE_BREAKS: Dict[str, Dict[str, bool]] = {
    "javascript": {"(": True, ")": False, "=": False},
    "python": {"(": True, ")": False, "=": False},
    "html": {"<": False, ">": True},
}


def break_points(line: str, limit: int, language: str = "plain") -> List[int]:
    """
    Candidate split offsets for one line.

    Only characters at positions strictly below ``limit`` are candidates.
    A split after a comma or an opening bracket keeps the character on the
    first line; a split at a space drops the space.
    """
    breaks = dict(_BREAK_AFTER)
    breaks.update(_LANGUAGE_BREAKS.get(language, {}))

    points = []
    for index, char in enumerate(line[:limit]):
        after = breaks.get(char)
        if after is None:
            continue
        split = index + 1 if after else index
        if 0 < split <= limit:
            points.append(split)
    return points


def wrap_line(line: str, limit: int, language: str = "plain") -> List[str]:
    """
    Wrap one line to ``limit`` characters.

    Breaks at the rightmost candidate below the limit; with no candidate the
    line is hard-cut at the limit.
    """
    if limit <= 0 or len(line) <= limit:
        return [line]

    wrapped: List[str] = []
    remaining = line
    while len(remaining) > limit:
        # Never split inside the line's own indentation
        indent = len(remaining) - len(remaining.lstrip())
        points = [p for p in break_points(remaining, limit, language) if p > indent]
        split = max(points) if points else limit
        head = remaining[:split].rstrip()
        remaining = remaining[split:].lstrip()
        if head:
            wrapped.append(head)
    if remaining:
        wrapped.append(remaining)
    return wrapped


def wrap_code(code: str, limit: int, language: str = "plain") -> str:
    lines: List[str] = []
    for line in code.split("\n"):
        lines.extend(wrap_line(line, limit, language))
    return "\n".join(lines)


class CodeFormatter(BaseCleaner):
    """
    Format and clean code in various programming languages.

    Steps, in order: line endings, trailing whitespace, indentation style,
    language pass, wrapping, final newline.
    """

    name = "Code Formatter"
    description = "Format and clean code in various programming languages"
    supported_extensions = (
        ".js", ".ts", ".py", ".java", ".cpp", ".c", ".h",
        ".html", ".css", ".php", ".xml",
    )
    options_model = CodeOptions

    def _process(
        self,
        text: str,
        options: CodeOptions,
        cancel_token: Optional[CancellationToken],
    ) -> Tuple[str, Dict[str, Any]]:
        language = detect_language(text) if options.language == "auto" else options.language.lower()

        output = text
        if options.normalize_line_endings:
            output = _LINE_ENDINGS.sub("\n", output)

        if options.trim_trailing_whitespace:
            output = _TRAILING_WHITESPACE.sub("", output)

        output = _retab_leading(output, options.indent_size, options.use_tabs)

        formatter = _LANGUAGE_FORMATTERS.get(language)
        if formatter is not None and not options.use_tabs:
            output = formatter(output, options.indent_size)
        check_cancelled(cancel_token)

        if options.max_line_length > 0:
            output = wrap_code(output, options.max_line_length, language)

        if options.insert_final_newline and not output.endswith("\n"):
            output += "\n"

        indentation = "tabs" if options.use_tabs else f"{options.indent_size} spaces"

        return output, {
            "language": language,
            "lines": len(output.split("\n")),
            "characters": len(output),
            "indentation": indentation,
        }
