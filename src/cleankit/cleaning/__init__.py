"""Format-aware cleaners and the registry that names them."""

from cleankit.cleaning.base import BaseCleaner, Cleaner, CleanerOptions
from cleankit.cleaning.code_formatter import (
    CodeFormatter,
    CodeOptions,
    detect_language,
    wrap_code,
)
from cleankit.cleaning.csv_cleaner import (
    CSVCleaner,
    CSVOptions,
    parse_csv,
    serialize_csv,
    validate_csv,
)
from cleankit.cleaning.html_cleaner import HTMLCleaner, HTMLOptions
from cleankit.cleaning.json_normalizer import (
    JSONNormalizer,
    JSONOptions,
    minify_json,
    prettify_json,
    validate_json,
)
from cleankit.cleaning.registry import (
    CleanerDescriptor,
    CleanerRegistry,
    create_default_registry,
)
from cleankit.cleaning.text_formatter import TextFormatter, TextOptions

__all__ = [
    "Cleaner",
    "BaseCleaner",
    "CleanerOptions",
    "CleanerRegistry",
    "CleanerDescriptor",
    "create_default_registry",
    "CSVCleaner",
    "CSVOptions",
    "parse_csv",
    "serialize_csv",
    "validate_csv",
    "JSONNormalizer",
    "JSONOptions",
    "validate_json",
    "minify_json",
    "prettify_json",
    "CodeFormatter",
    "CodeOptions",
    "detect_language",
    "wrap_code",
    "TextFormatter",
    "TextOptions",
    "HTMLCleaner",
    "HTMLOptions",
]
