"""HTML sanitizer for pasted markup."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from cleankit.cleaning.base import BaseCleaner, CleanerOptions

if TYPE_CHECKING:
    from cleankit.core.cancellation import CancellationToken

_SCRIPTS = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_STYLES = re.compile(r"<style\b[^>]*>.*?</style\s*>", re.IGNORECASE | re.DOTALL)
_COMMENTS = re.compile(r"<!--.*?-->", re.DOTALL)
_BETWEEN_TAGS = re.compile(r">\s+<")
_WHITESPACE = re.compile(r"\s+")


class HTMLOptions(CleanerOptions):
    """Options for the HTML cleaner."""

    remove_scripts: bool = True
    remove_styles: bool = False
    remove_comments: bool = False
    minify: bool = False


class HTMLCleaner(BaseCleaner):
    """Strip scripts, styles and comments from HTML; optionally minify."""

    name = "HTML Cleaner"
    description = "Remove scripts, styles and comments from HTML"
    supported_extensions = (".html", ".htm")
    options_model = HTMLOptions

    def _process(
        self,
        text: str,
        options: HTMLOptions,
        cancel_token: Optional[CancellationToken],
    ) -> Tuple[str, Dict[str, Any]]:
        output = text
        removed: Dict[str, int] = {"scripts": 0, "styles": 0, "comments": 0}

        if options.remove_scripts:
            output, removed["scripts"] = _SCRIPTS.subn("", output)
        if options.remove_styles:
            output, removed["styles"] = _STYLES.subn("", output)
        if options.remove_comments:
            output, removed["comments"] = _COMMENTS.subn("", output)

        if options.minify:
            output = _BETWEEN_TAGS.sub("><", output)
            output = _WHITESPACE.sub(" ", output).strip()

        return output, {
            "removed": removed,
            "minified": options.minify,
            "characters": len(output),
        }
