"""Tests for the cleaner registry."""

from __future__ import annotations

import logging

import pytest

from cleankit.cleaning.base import Cleaner
from cleankit.cleaning.registry import CleanerRegistry, create_default_registry
from cleankit.core.exceptions import ConfigurationError, NotFoundError


class TestCleanerRegistry:
    def test_register_and_get(self, mock_cleaner):
        registry = CleanerRegistry()
        descriptor = registry.register("mock", mock_cleaner)

        assert registry.get("mock") is mock_cleaner
        assert descriptor.id == "mock"
        assert descriptor.name == "Mock Cleaner"
        assert descriptor.supported_extensions == (".mock",)
        assert "mock" in registry
        assert len(registry) == 1

    def test_unknown_id(self):
        with pytest.raises(NotFoundError, match='Cleaner "nope" not found'):
            CleanerRegistry().get("nope")

    def test_not_found_is_lookup_error(self):
        with pytest.raises(LookupError):
            CleanerRegistry().get("nope")

    def test_rejects_object_without_process(self):
        class NotACleaner:
            name = "broken"
            description = ""
            supported_extensions = ()
            default_options = {}

        with pytest.raises(ConfigurationError, match="must implement process"):
            CleanerRegistry().register("broken", NotACleaner())

    def test_rejects_empty_id(self, mock_cleaner):
        with pytest.raises(ConfigurationError):
            CleanerRegistry().register("", mock_cleaner)

    def test_overwrite_warns(self, mock_cleaner, caplog):
        registry = CleanerRegistry()
        first, second = mock_cleaner, type(mock_cleaner)()
        registry.register("mock", first)

        with caplog.at_level(logging.WARNING):
            registry.register("mock", second)

        assert registry.get("mock") is second
        assert "already registered" in caplog.text
        assert len(registry) == 1

    def test_descriptor_defaults_read_only(self, mock_registry):
        descriptor = mock_registry.descriptor("mock")
        with pytest.raises(TypeError):
            descriptor.default_options["upper"] = True
        assert descriptor.to_dict()["default_options"] == {"upper": False}

    def test_process_delegates(self, mock_registry, mock_cleaner):
        result = mock_registry.process("mock", "  hi  ")
        assert result.output == "hi"
        assert mock_cleaner.calls == ["  hi  "]


class TestDefaultRegistry:
    def test_builtin_ids_in_order(self):
        assert create_default_registry().ids() == ["text", "csv", "json", "html", "code"]

    def test_builtins_satisfy_protocol(self):
        registry = create_default_registry()
        for cleaner_id in registry:
            assert isinstance(registry.get(cleaner_id), Cleaner)

    @pytest.mark.parametrize(
        "extension, expected",
        [
            (".csv", "csv"),
            ("JSON", "json"),
            (".py", "code"),
            (".html", "html"),
            (".md", "text"),
            (".exe", None),
        ],
    )
    def test_find_by_extension(self, extension, expected):
        assert create_default_registry().find_by_extension(extension) == expected

    def test_list_descriptors(self):
        names = [d.name for d in create_default_registry().list()]
        assert "CSV Cleaner" in names
        assert "JSON Normalizer" in names
