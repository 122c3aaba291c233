"""
Unit tests for error handling utilities.

Tests table validation, value coercion and bounded calls.
"""
import threading

import pytest
import pandas as pd
import numpy as np
from handover_engine.utils.error_handling import (
    validate_columns_exist,
    log_dataframe_summary,
    finite_or_none,
    int_or_none,
    call_with_timeout,
)
from handover_engine.utils.exceptions import DataValidationError


class TestValidateColumnsExist:
    """Test validate_columns_exist function."""

    def test_passes_with_all_columns(self):
        """Should pass when all required columns exist."""
        df = pd.DataFrame({'node_id': [1], 'cell_id': [2]})
        validate_columns_exist(df, {'node_id', 'cell_id'})

    def test_raises_on_missing_columns(self):
        """Should raise DataValidationError naming the missing columns."""
        df = pd.DataFrame({'cell_id': [2]})

        with pytest.raises(DataValidationError) as exc_info:
            validate_columns_exist(df, {'node_id', 'cell_id'}, df_name="terminals table")

        assert "node_id" in str(exc_info.value)
        assert "terminals table" in str(exc_info.value)


class TestLogDataframeSummary:
    """Test log_dataframe_summary function."""

    def test_does_not_raise(self):
        df = pd.DataFrame({'a': [1, 2]})
        log_dataframe_summary(df, "test")
        log_dataframe_summary(df, "test", include_columns=False)


class TestFiniteOrNone:
    """Test finite_or_none function."""

    @pytest.mark.parametrize("value,expected", [
        (1.5, 1.5),
        ("2.5", 2.5),
        (0, 0.0),
        (np.float64(3.0), 3.0),
    ])
    def test_finite_values(self, value, expected):
        assert finite_or_none(value) == expected

    @pytest.mark.parametrize("value", [None, np.nan, float('inf'), -np.inf, "abc", ""])
    def test_missing_values(self, value):
        assert finite_or_none(value) is None


class TestIntOrNone:
    """Test int_or_none function."""

    def test_integral_values(self):
        assert int_or_none(3) == 3
        assert int_or_none(3.0) == 3
        assert int_or_none("7") == 7

    def test_non_integral_values(self):
        assert int_or_none(3.5) is None
        assert int_or_none(np.nan) is None
        assert int_or_none(None) is None


class TestCallWithTimeout:
    """Test call_with_timeout function."""

    def test_returns_result(self):
        assert call_with_timeout(lambda x: x * 2, 21, timeout=1.0) == 42

    def test_propagates_exceptions(self):
        def fail():
            raise RuntimeError("model crashed")

        with pytest.raises(RuntimeError, match="model crashed"):
            call_with_timeout(fail, timeout=1.0)

    def test_raises_timeout_error(self):
        release = threading.Event()
        try:
            with pytest.raises(TimeoutError):
                call_with_timeout(release.wait, 5.0, timeout=0.05)
        finally:
            release.set()

    def test_abandoned_call_runs_on_daemon_thread(self):
        release = threading.Event()
        try:
            with pytest.raises(TimeoutError):
                call_with_timeout(release.wait, 5.0, timeout=0.05, thread_name="stuck-call")

            stuck = [t for t in threading.enumerate() if t.name == "stuck-call"]
            assert stuck
            assert all(t.daemon for t in stuck)
        finally:
            release.set()
