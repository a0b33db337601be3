"""Base cleaner interface and shared option handling."""

from __future__ import annotations

import time
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Mapping,
    Optional,
    Protocol,
    Tuple,
    Type,
    Union,
    runtime_checkable,
)

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from cleankit.core.exceptions import ValidationError
from cleankit.core.results import ProcessingResult

if TYPE_CHECKING:
    from cleankit.core.cancellation import CancellationToken

OptionsInput = Union[Mapping[str, Any], "CleanerOptions", None]


class CleanerOptions(BaseModel):
    """
    Base class for per-cleaner option records.

    Frozen so resolved defaults can be shared safely. Fields accept both
    ``snake_case`` names and their camelCase aliases (``has_header`` or
    ``hasHeader``). Unknown names are rejected.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


@runtime_checkable
class Cleaner(Protocol):
    """
    Protocol for format cleaners.

    A cleaner turns one text in one format into its cleaned form. This is
    the only capability the registry and orchestrator rely on.
    """

    name: str
    description: str
    supported_extensions: Tuple[str, ...]

    @property
    def default_options(self) -> Dict[str, Any]:
        """
        Get the cleaner's default options.

        Returns:
            A fresh dict; mutating it has no effect on the cleaner.
        """
        ...

    def process(
        self,
        text: str,
        options: OptionsInput = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ProcessingResult:
        """
        Clean text.

        Args:
            text: Input text
            options: Overrides merged over the cleaner's defaults
            cancel_token: Optional token polled during long scans

        Returns:
            ProcessingResult with ``output`` and ``metadata``

        Raises:
            FormatError: If the input cannot be parsed or repaired
            ValidationError: If the options are invalid
        """
        ...


class BaseCleaner:
    """
    Shared plumbing for the built-in cleaners.

    Subclasses set the descriptor attributes and ``options_model`` and
    implement ``_process``. Timing and option merging happen here.
    """

    name: str = ""
    description: str = ""
    supported_extensions: Tuple[str, ...] = ()
    options_model: Type[CleanerOptions] = CleanerOptions

    def __init__(self, **defaults: Any) -> None:
        self._defaults = self.resolve_options(defaults, base=self.options_model())

    @property
    def default_options(self) -> Dict[str, Any]:
        return self._defaults.model_dump()

    def resolve_options(
        self,
        options: OptionsInput = None,
        base: Optional[CleanerOptions] = None,
    ) -> CleanerOptions:
        """
        Merge ``options`` over ``base`` (the cleaner defaults by default).

        Only fields the caller actually set override the base; ``base`` is
        never modified.
        """
        base = self._defaults if base is None else base
        if options is None:
            return base
        if isinstance(options, self.options_model):
            return options
        if isinstance(options, BaseModel):
            raise ValidationError(
                f"{self.name} expects {self.options_model.__name__}, "
                f"got {type(options).__name__}"
            )
        try:
            partial = self.options_model.model_validate(dict(options))
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid options for {self.name}: {e}") from e
        if not partial.model_fields_set:
            return base
        return base.model_copy(
            update={k: getattr(partial, k) for k in partial.model_fields_set}
        )

    def process(
        self,
        text: str,
        options: OptionsInput = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ProcessingResult:
        opts = self.resolve_options(options)
        start = time.perf_counter()

        output, metadata = self._process(text, opts, cancel_token)

        metadata["processing_time"] = (time.perf_counter() - start) * 1000
        metadata["options"] = opts.model_dump()
        return ProcessingResult(output=output, metadata=metadata)

    def _process(
        self,
        text: str,
        options: Any,
        cancel_token: Optional[CancellationToken],
    ) -> Tuple[str, Dict[str, Any]]:
        raise NotImplementedError
