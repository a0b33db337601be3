"""Registry mapping cleaner ids to cleaner instances."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional, Tuple

from cleankit.cleaning.base import Cleaner
from cleankit.core.exceptions import ConfigurationError, NotFoundError

if TYPE_CHECKING:
    from cleankit.cleaning.base import OptionsInput
    from cleankit.core.results import ProcessingResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CleanerDescriptor:
    """
    Public description of a registered cleaner.

    Attributes:
        id: Registry key
        name: Human-readable name
        description: One-line summary
        supported_extensions: File extensions the cleaner is meant for
        default_options: Read-only view of the default options
    """

    id: str
    name: str
    description: str = ""
    supported_extensions: Tuple[str, ...] = ()
    default_options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "supported_extensions": list(self.supported_extensions),
            "default_options": dict(self.default_options),
        }


class CleanerRegistry:
    """
    Registry of cleaners keyed by id.

    Entries are expected to be registered once at startup. Registering an
    id twice replaces the earlier cleaner and logs a warning.
    """

    def __init__(self) -> None:
        self._cleaners: Dict[str, Cleaner] = {}
        self._descriptors: Dict[str, CleanerDescriptor] = {}

    def register(self, cleaner_id: str, cleaner: Cleaner) -> CleanerDescriptor:
        """
        Register a cleaner under ``cleaner_id``.

        Args:
            cleaner_id: Registry key (e.g. "csv")
            cleaner: Object implementing the Cleaner protocol

        Returns:
            The descriptor built for the entry

        Raises:
            ConfigurationError: If the id is empty or the object cannot clean
        """
        if not cleaner_id:
            raise ConfigurationError("Cleaner id must be a non-empty string")
        if not isinstance(cleaner, Cleaner) or not callable(getattr(cleaner, "process", None)):
            raise ConfigurationError(
                f'Cleaner "{cleaner_id}" must implement process()',
                context={"cleaner": cleaner_id},
            )

        if cleaner_id in self._cleaners:
            logger.warning(f'Cleaner "{cleaner_id}" already registered, overwriting')

        descriptor = CleanerDescriptor(
            id=cleaner_id,
            name=getattr(cleaner, "name", "") or cleaner_id,
            description=getattr(cleaner, "description", "") or "",
            supported_extensions=tuple(getattr(cleaner, "supported_extensions", ()) or ()),
            default_options=MappingProxyType(dict(cleaner.default_options)),
        )
        self._cleaners[cleaner_id] = cleaner
        self._descriptors[cleaner_id] = descriptor
        logger.debug(f"Registered cleaner: {cleaner_id}")
        return descriptor

    def get(self, cleaner_id: str) -> Cleaner:
        """
        Look up a cleaner.

        Raises:
            NotFoundError: If no cleaner is registered under the id
        """
        try:
            return self._cleaners[cleaner_id]
        except KeyError:
            raise NotFoundError(
                f'Cleaner "{cleaner_id}" not found',
                context={"cleaner": cleaner_id},
            ) from None

    def descriptor(self, cleaner_id: str) -> CleanerDescriptor:
        self.get(cleaner_id)
        return self._descriptors[cleaner_id]

    def has(self, cleaner_id: str) -> bool:
        """Check if a cleaner is registered."""
        return cleaner_id in self._cleaners

    def ids(self) -> List[str]:
        """List registered ids in registration order."""
        return list(self._cleaners)

    def list(self) -> List[CleanerDescriptor]:
        """List descriptors for all registered cleaners."""
        return list(self._descriptors.values())

    def find_by_extension(self, extension: str) -> Optional[str]:
        """
        Find the first cleaner id that claims a file extension.

        Args:
            extension: With or without the leading dot, any case

        Returns:
            Cleaner id, or None if nothing matches
        """
        ext = extension.lower()
        if not ext.startswith("."):
            ext = f".{ext}"
        for cleaner_id, descriptor in self._descriptors.items():
            if ext in (e.lower() for e in descriptor.supported_extensions):
                return cleaner_id
        return None

    def process(
        self,
        cleaner_id: str,
        text: str,
        options: OptionsInput = None,
    ) -> ProcessingResult:
        """Run a cleaner directly, with no validation, deadline or stats."""
        return self.get(cleaner_id).process(text, options)

    def __contains__(self, cleaner_id: object) -> bool:
        return cleaner_id in self._cleaners

    def __len__(self) -> int:
        return len(self._cleaners)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._cleaners))


def create_default_registry() -> CleanerRegistry:
    """Create a registry with the built-in cleaners."""
    from cleankit.cleaning.code_formatter import CodeFormatter
    from cleankit.cleaning.csv_cleaner import CSVCleaner
    from cleankit.cleaning.html_cleaner import HTMLCleaner
    from cleankit.cleaning.json_normalizer import JSONNormalizer
    from cleankit.cleaning.text_formatter import TextFormatter

    registry = CleanerRegistry()
    registry.register("text", TextFormatter())
    registry.register("csv", CSVCleaner())
    registry.register("json", JSONNormalizer())
    registry.register("html", HTMLCleaner())
    registry.register("code", CodeFormatter())
    return registry
