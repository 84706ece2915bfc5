# utils/json_utils.py
import datetime
import decimal

import numpy as np
import pandas as pd


def to_jsonable(value):
    """Convert common non-JSON-serializable types to safe JSON values."""
    if isinstance(value, pd.Timestamp):
        return value.tz_localize(None).isoformat()
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    if isinstance(value, decimal.Decimal):
        return float(value)
    if isinstance(value, (np.integer, np.floating)):
        return value.item()
    if isinstance(value, np.bool_):
        return bool(value)
    return value


def jsonable_record(row: dict) -> dict:
    """Shallow-convert every value of a row dict."""
    return {k: to_jsonable(v) for k, v in dict(row).items()}
