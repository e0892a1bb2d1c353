"""Data models for the Flock Line Monitor"""
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from datetime import datetime

DEFAULT_TIME_OF_DAY = '06:00:00'


@dataclass
class ProductionRecord:
    """One normalized spreadsheet row; every field has a default"""
    part_number: str = ''
    part_name: str = ''
    quantity: int = 0
    date: str = ''
    shift: str = ''
    operator: str = ''
    line_id: str = ''
    total_quantity_per_shift: str = '0'
    parts_per_hour: float = 0.0
    time_of_day: str = DEFAULT_TIME_OF_DAY
    total_scrap: int = 0
    scrap_rate_percent: str = '0.0'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'Part Number': self.part_number,
            'Part Name': self.part_name,
            'Quantity': self.quantity,
            'Date': self.date,
            'Shift': self.shift,
            'Operator': self.operator,
            'Line': self.line_id,
            'Total Quantity/Shift': self.total_quantity_per_shift,
            'Parts/Hour': self.parts_per_hour,
            'Time': self.time_of_day,
            'Scrap Quantity': self.total_scrap,
            'Scrap %': self.scrap_rate_percent
        }


@dataclass(frozen=True)
class LineStatus:
    """Current part and scrap figures shown for one line"""
    part_number: str
    part_name: str
    total_quantity_per_shift: str
    parts_per_hour: int
    total_scrap: int
    scrap_rate_percent: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'partNumber': self.part_number,
            'partName': self.part_name,
            'totalQuantityPerShift': self.total_quantity_per_shift,
            'partsPerHour': self.parts_per_hour,
            'totalScrap': self.total_scrap,
            'scrapRatePercent': self.scrap_rate_percent
        }


# Shown for a line that has no rows in the current file
PLACEHOLDER_STATUS = LineStatus(
    part_number='-',
    part_name='-',
    total_quantity_per_shift='0',
    parts_per_hour=0,
    total_scrap=0,
    scrap_rate_percent='0.0'
)


@dataclass(frozen=True)
class GraphPoint:
    """One half-hour slot; value None renders as a gap"""
    slot: str
    value: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'time': self.slot, 'value': self.value}


@dataclass
class LineView:
    """Everything the dashboard shows for a single line"""
    line_id: str
    status: LineStatus
    graph: List[GraphPoint]
    record_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'line': self.line_id,
            'status': self.status.to_dict(),
            'graph': [point.to_dict() for point in self.graph],
            'record_count': self.record_count
        }


@dataclass
class Aggregates:
    """Cross-line totals"""
    total_quantity: int = 0
    total_scrap: int = 0
    average_scrap_rate: str = '0.0'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalQuantity': self.total_quantity,
            'totalScrap': self.total_scrap,
            'averageScrapRate': self.average_scrap_rate
        }


@dataclass
class DashboardSnapshot:
    """Result of one successful refresh, as published to the presentation layer"""
    lines: Dict[str, LineView]
    aggregates: Aggregates
    refreshed_at: datetime
    records: List[ProductionRecord] = field(default_factory=list)
    source_file: Optional[str] = None

    def to_dict(self, include_records: bool = False) -> Dict[str, Any]:
        payload = {
            'source_file': self.source_file,
            'refreshed_at': self.refreshed_at.isoformat(),
            'record_count': len(self.records),
            'lines': {line_id: view.to_dict() for line_id, view in self.lines.items()},
            'aggregates': self.aggregates.to_dict()
        }
        if include_records:
            payload['records'] = [record.to_dict() for record in self.records]
        return payload


@dataclass(frozen=True)
class FileCache:
    """Bytes of the last accepted upload; never mutated after creation"""
    file_name: str
    data: bytes
    captured_at: datetime
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)
