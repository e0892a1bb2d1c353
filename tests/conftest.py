"""
Shared test fixtures and helpers for the monitor test suite.
"""
import os
import sys
from io import BytesIO

import pytest
from openpyxl import Workbook

sys.path.insert(0, os.path.join(os.path.dirname(__file__), os.pardir))

COLUMNS = [
    'Part Number', 'Part Name', 'Quantity', 'Date', 'Shift', 'Operator', 'Line',
    'Total Quantity/Shift', 'Parts/Hour', 'Time', 'Scrap Quantity', 'Scrap %'
]

XLSX_MIME = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def make_row(line='1', time_value='09:00:00', parts_per_hour=120, **overrides):
    row = {
        'Part Number': 'PN-100',
        'Part Name': 'Door Panel',
        'Quantity': 10,
        'Date': '2024-03-04',
        'Shift': '1',
        'Operator': 'J. Ruiz',
        'Line': line,
        'Total Quantity/Shift': '480',
        'Parts/Hour': parts_per_hour,
        'Time': time_value,
        'Scrap Quantity': 3,
        'Scrap %': 0.025,
    }
    row.update(overrides)
    return row


def make_workbook_bytes(rows, columns=COLUMNS):
    """Write rows to the first sheet of an in-memory .xlsx"""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = 'Production'
    if columns:
        sheet.append(columns)
    for row in rows:
        sheet.append([row.get(column) for column in columns])
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def two_line_rows():
    return [
        make_row(line='1', time_value='09:00:00', parts_per_hour=120),
        make_row(line='2', time_value='09:05:00', parts_per_hour=80, **{'Part Number': 'PN-200'}),
    ]


@pytest.fixture
def workbook_bytes(two_line_rows):
    return make_workbook_bytes(two_line_rows)
