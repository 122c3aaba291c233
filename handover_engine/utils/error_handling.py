"""
Error handling utilities for the handover engine.

Provides helpers for table validation, NaN-tolerant value coercion and
bounded calls into slow external code.
"""
import threading
from typing import Set, Callable, Any, Optional
import pandas as pd
import numpy as np
from handover_engine.utils.logging_config import get_logger
from handover_engine.utils.exceptions import DataValidationError

logger = get_logger(__name__)


def validate_columns_exist(
    df: pd.DataFrame,
    required_columns: Set[str],
    df_name: str = "DataFrame"
) -> None:
    """
    Validate that all required columns exist in DataFrame.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to validate
    required_columns : Set[str]
        Set of required column names
    df_name : str
        Name of DataFrame for error message

    Raises
    ------
    DataValidationError
        If required columns are missing
    """
    missing_cols = required_columns - set(df.columns)
    if missing_cols:
        raise DataValidationError(
            f"{df_name} missing required columns: {sorted(missing_cols)}. "
            f"Available columns: {sorted(df.columns.tolist())}"
        )


def log_dataframe_summary(
    df: pd.DataFrame,
    name: str,
    include_columns: bool = True
) -> None:
    """
    Log summary statistics for a DataFrame.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to summarize
    name : str
        Name for logging
    include_columns : bool
        Whether to log column names
    """
    log_data = {
        "dataframe": name,
        "rows": len(df),
        "columns": len(df.columns),
    }

    if include_columns:
        log_data["column_names"] = df.columns.tolist()

    logger.debug("dataframe_summary", **log_data)


def finite_or_none(value: Any) -> Optional[float]:
    """
    Convert a table cell to a float, mapping missing and non-finite values to None.

    Parameters
    ----------
    value : Any
        Raw value (number, string, None or NaN)

    Returns
    -------
    Optional[float]
        Finite float, or None
    """
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
        result = float(value)
    except (ValueError, TypeError):
        return None
    if not np.isfinite(result):
        return None
    return result


def int_or_none(value: Any) -> Optional[int]:
    """
    Convert a table cell to an int identifier, or None when it is not integral.

    Parameters
    ----------
    value : Any
        Raw value

    Returns
    -------
    Optional[int]
        Integer value, or None
    """
    number = finite_or_none(value)
    if number is None or not float(number).is_integer():
        return None
    return int(number)


def call_with_timeout(
    func: Callable,
    *args,
    timeout: Optional[float] = None,
    thread_name: str = "bounded-call",
) -> Any:
    """
    Run ``func(*args)`` on a daemon thread and wait at most ``timeout`` seconds.

    A call that times out keeps running on its thread and its result is
    discarded. The thread is a daemon, so a call that never returns does not
    keep the interpreter alive at exit.

    Parameters
    ----------
    func : Callable
        Function to invoke
    timeout : Optional[float]
        Seconds to wait; None waits indefinitely
    thread_name : str
        Name of the worker thread

    Returns
    -------
    Any
        Return value of ``func``

    Raises
    ------
    TimeoutError
        If the call does not finish in time
    Exception
        Whatever ``func`` raised
    """
    outcome = {}

    def target():
        try:
            outcome['result'] = func(*args)
        except Exception as e:
            outcome['error'] = e

    worker = threading.Thread(target=target, name=thread_name, daemon=True)
    worker.start()
    worker.join(timeout)

    if worker.is_alive():
        logger.warning("bounded_call_abandoned", thread=thread_name, timeout_s=timeout)
        raise TimeoutError(f"{getattr(func, '__name__', 'call')} exceeded {timeout}s")
    if 'error' in outcome:
        raise outcome['error']
    return outcome.get('result')
