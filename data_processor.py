"""Spreadsheet row normalization"""
from typing import Optional, List, Any, Mapping, Iterable
from collections.abc import Mapping as MappingABC
from datetime import datetime, date, time
import logging
import math
import numbers
import re
import warnings

import pandas as pd

from models import ProductionRecord, DEFAULT_TIME_OF_DAY
from utils import SECONDS_PER_DAY, format_seconds, match_clock

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r'^\s*([+-]?[0-9]+)')
_LEADING_FLOAT = re.compile(r'^\s*([+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)')


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def parse_int(value: Any) -> Optional[int]:
    """Leading-integer parse ("12 pcs" -> 12); None when nothing parses"""
    try:
        if _is_number(value):
            return int(value) if math.isfinite(value) else None
        if isinstance(value, str):
            match = _LEADING_INT.match(value)
            return int(match.group(1)) if match else None
    except (ValueError, OverflowError):
        # Digit strings past the interpreter's int conversion limit
        logger.debug(f"Integer value too large to parse ({len(str(value))} chars)")
    return None


def parse_float(value: Any) -> Optional[float]:
    """Leading-float parse ("0.05%" -> 0.05); None when nothing parses"""
    if _is_number(value):
        result = float(value)
    elif isinstance(value, str):
        match = _LEADING_FLOAT.match(value)
        if not match:
            return None
        result = float(match.group(1))
    else:
        return None
    return result if math.isfinite(result) else None


def to_text(value: Any, default: str = '') -> str:
    """
    Render a cell as text.

    Integral floats lose their ".0" (pandas promotes integer columns with
    blanks to float), dates render as ISO strings.
    """
    if value is None:
        return default
    if isinstance(value, str):
        return value or default
    if isinstance(value, datetime):
        if pd.isna(value):
            return default
        if value.time() == time(0, 0):
            return value.strftime('%Y-%m-%d')
        return value.isoformat(sep=' ')
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, float) or (_is_number(value) and not isinstance(value, numbers.Integral)):
        if not math.isfinite(value):
            return default
        if float(value).is_integer():
            return str(int(value))
    return str(value)


class ProductionDataProcessor:
    """Turns decoded spreadsheet rows into ProductionRecords"""

    @staticmethod
    def normalize_time(raw: Any) -> str:
        """
        Normalize a Time cell to HH:MM:SS.

        Numbers are spreadsheet day fractions (0.25 -> 06:00:00). H:MM:SS strings
        are re-padded. Anything else goes through a generic date-time parse, and
        whatever cannot be read becomes 06:00:00. Never raises.

        Args:
            raw: Cell value as handed back by the decoder

        Returns:
            Time of day as HH:MM:SS
        """
        try:
            if raw is None or isinstance(raw, bool):
                return DEFAULT_TIME_OF_DAY

            if isinstance(raw, datetime):
                if pd.isna(raw):
                    return DEFAULT_TIME_OF_DAY
                return raw.strftime('%H:%M:%S')

            if isinstance(raw, time):
                return raw.strftime('%H:%M:%S')

            if _is_number(raw):
                if not math.isfinite(raw):
                    return DEFAULT_TIME_OF_DAY
                return format_seconds(_round_half_up(raw * SECONDS_PER_DAY))

            if isinstance(raw, str) and raw:
                match = match_clock(raw)
                if match:
                    hours, minutes, seconds = match.groups()
                    return f"{hours.zfill(2)}:{minutes}:{seconds}"

                with warnings.catch_warnings():
                    warnings.simplefilter('ignore')
                    parsed = pd.to_datetime(raw, errors='coerce')
                if not pd.isna(parsed):
                    return parsed.strftime('%H:%M:%S')

            logger.debug(f"Unreadable time value {raw!r}, using {DEFAULT_TIME_OF_DAY}")
            return DEFAULT_TIME_OF_DAY
        except Exception as e:
            logger.debug(f"Time value {raw!r} failed to parse: {e}")
            return DEFAULT_TIME_OF_DAY

    @staticmethod
    def normalize_record(row: Mapping[str, Any]) -> ProductionRecord:
        """
        Map one decoded row to a ProductionRecord.

        A malformed or missing cell only degrades its own field to the default.
        Scrap rate is the sheet's 'Scrap %' fraction times 100, one decimal.
        """
        if not isinstance(row, MappingABC):
            row = {}

        scrap_percent = (parse_float(row.get('Scrap %')) or 0.0) * 100
        if not math.isfinite(scrap_percent):
            scrap_percent = 0.0

        return ProductionRecord(
            part_number=to_text(row.get('Part Number')),
            part_name=to_text(row.get('Part Name')),
            quantity=max(parse_int(row.get('Quantity')) or 0, 0),
            date=to_text(row.get('Date')),
            shift=to_text(row.get('Shift')),
            operator=to_text(row.get('Operator')),
            line_id=to_text(row.get('Line')),
            total_quantity_per_shift=to_text(row.get('Total Quantity/Shift'), '0'),
            parts_per_hour=max(parse_float(row.get('Parts/Hour')) or 0.0, 0.0),
            time_of_day=ProductionDataProcessor.normalize_time(row.get('Time')),
            total_scrap=max(parse_int(row.get('Scrap Quantity')) or 0, 0),
            scrap_rate_percent=f"{scrap_percent + 0.0:.1f}"
        )

    @staticmethod
    def normalize_rows(rows: Iterable[Mapping[str, Any]]) -> List[ProductionRecord]:
        """Normalize a decoded sheet, preserving row order"""
        records = [ProductionDataProcessor.normalize_record(row) for row in rows]
        logger.debug(f"Normalized {len(records)} rows")
        return records
