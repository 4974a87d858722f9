"""Tests for core/excludes.py module."""

from __future__ import annotations

import pytest

from anchorscan.core.excludes import (
    DEFAULT_PRUNABLE_DIRS,
    HARDCODED_DIRS,
    PRUNABLE_DIRS,
    is_prunable,
)


class TestPrunableDirs:
    """Tests for PRUNABLE_DIRS constant."""

    def test_is_union_of_hardcoded_and_defaults(self) -> None:
        assert PRUNABLE_DIRS == HARDCODED_DIRS | DEFAULT_PRUNABLE_DIRS

    def test_contains_own_data_dir(self) -> None:
        """anchorscan never indexes its own metadata."""
        assert ".anchorscan" in PRUNABLE_DIRS

    @pytest.mark.parametrize("dirname", ["target", "node_modules", ".anchor", "test-ledger"])
    def test_given_toolchain_output_when_checked_then_prunable(self, dirname: str) -> None:
        assert is_prunable(dirname) is True

    @pytest.mark.parametrize("dirname", ["programs", "src", "instructions", "state"])
    def test_given_source_dir_when_checked_then_not_prunable(self, dirname: str) -> None:
        assert is_prunable(dirname) is False
