"""General-purpose plain text cleaner."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from pydantic import Field

from cleankit.cleaning.base import BaseCleaner, CleanerOptions
from cleankit.core.cancellation import check_cancelled

if TYPE_CHECKING:
    from cleankit.core.cancellation import CancellationToken

_LINE_ENDINGS = re.compile(r"\r\n|\r")
_INNER_SPACES = re.compile(r"[ \t]+")
_EDGE_SPACES = re.compile(r"^[ \t]+|[ \t]+$", re.MULTILINE)
_EMPTY_LINES = re.compile(r"^\s*\n", re.MULTILINE)
_NUMBERS = re.compile(r"\d+")
_PUNCTUATION = re.compile(r"[.,!?;:'\"()\[\]{}]")
_SPECIAL_CHARS = re.compile(r"[^\w\s]")
_WORD_START = re.compile(r"(^|\s)(\w)")


class TextOptions(CleanerOptions):
    """Options for the general text cleaner."""

    trim: bool = True
    remove_extra_spaces: bool = True
    remove_empty_lines: bool = True
    normalize_line_endings: bool = True
    line_ending: str = "\n"
    to_lower_case: bool = False
    to_upper_case: bool = False
    capitalize: bool = False
    remove_numbers: bool = False
    remove_punctuation: bool = False
    remove_special_chars: bool = False

    # 0 means no limit
    max_line_length: int = Field(default=0, ge=0)
    indent_size: int = Field(default=0, ge=0)


def wrap_words(text: str, limit: int) -> str:
    """Greedy word wrap; words longer than ``limit`` stay on their own line."""
    wrapped: List[str] = []
    for line in text.split("\n"):
        if len(line) <= limit:
            wrapped.append(line)
            continue
        current = ""
        for word in line.split(" "):
            if not current:
                current = word
            elif len(current) + 1 + len(word) <= limit:
                current = f"{current} {word}"
            else:
                wrapped.append(current)
                current = word
        wrapped.append(current)
    return "\n".join(wrapped)


class TextFormatter(BaseCleaner):
    """General text cleaning and formatting."""

    name = "Text Formatter"
    description = "General text cleaning and formatting tools"
    supported_extensions = (".txt", ".md", ".log", ".rtf")
    options_model = TextOptions

    def _process(
        self,
        text: str,
        options: TextOptions,
        cancel_token: Optional[CancellationToken],
    ) -> Tuple[str, Dict[str, Any]]:
        output = text

        if options.normalize_line_endings:
            output = _LINE_ENDINGS.sub("\n", output)

        if options.trim:
            output = output.strip()

        if options.remove_extra_spaces:
            output = _INNER_SPACES.sub(" ", output)
            output = _EDGE_SPACES.sub("", output)

        if options.remove_empty_lines:
            output = _EMPTY_LINES.sub("", output)

        if options.to_lower_case:
            output = output.lower()
        elif options.to_upper_case:
            output = output.upper()
        elif options.capitalize:
            output = _WORD_START.sub(lambda m: m.group(1) + m.group(2).upper(), output)

        if options.remove_numbers:
            output = _NUMBERS.sub("", output)
        if options.remove_punctuation:
            output = _PUNCTUATION.sub("", output)
        if options.remove_special_chars:
            output = _SPECIAL_CHARS.sub("", output)
        check_cancelled(cancel_token)

        if options.max_line_length > 0:
            output = wrap_words(output, options.max_line_length)

        if options.indent_size > 0:
            pad = " " * options.indent_size
            output = "\n".join(pad + line if line else line for line in output.split("\n"))

        # Line ending conversion goes last so the steps above only see "\n"
        if options.normalize_line_endings and options.line_ending != "\n":
            output = output.replace("\n", options.line_ending)

        return output, {
            "lines": len(output.split(options.line_ending)) if output else 0,
            "words": len(output.split()),
            "characters": len(output),
        }
