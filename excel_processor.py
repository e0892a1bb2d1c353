"""Spreadsheet decoding: raw workbook bytes to row mappings"""
from typing import List, Dict, Any, Union
from io import BytesIO
import logging

import pandas as pd

from exceptions import ExcelProcessingError

logger = logging.getLogger(__name__)


def process_excel_file(data: Union[bytes, bytearray]) -> List[Dict[str, Any]]:
    """
    Decode the first sheet of a workbook into row dicts.

    Blank cells come back as None. Cells are left raw: time-formatted cells
    arrive as datetime.time or day fractions, depending on the engine.

    Args:
        data: Workbook bytes (.xlsx via openpyxl, .xls via xlrd)

    Returns:
        One dict per data row, keyed by the header row

    Raises:
        ExcelProcessingError: Corrupt workbook, no sheets, or no data rows
    """
    try:
        with pd.ExcelFile(BytesIO(data)) as workbook:
            if not workbook.sheet_names:
                raise ExcelProcessingError("No sheets found in the Excel file")

            sheet_name = workbook.sheet_names[0]
            df = workbook.parse(sheet_name)

        if df.empty:
            raise ExcelProcessingError("No data found in the Excel file")

        # NaN/NaT -> None so downstream code sees "absent", not a float
        df = df.astype(object).where(df.notna(), None)
        rows = df.to_dict(orient='records')

        logger.info(f"Decoded {len(rows)} rows from sheet '{sheet_name}'")
        return rows
    except ExcelProcessingError:
        raise
    except Exception as e:
        raise ExcelProcessingError(f"Excel processing error: {e}") from e
