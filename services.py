"""Line partitioning, status reduction and time-grid reconciliation"""
from typing import Optional, List, Dict, Iterable, Mapping, Any, Sequence
from datetime import datetime
import logging
import math

from models import (
    ProductionRecord, LineStatus, GraphPoint, LineView, Aggregates,
    DashboardSnapshot, PLACEHOLDER_STATUS
)
from data_processor import ProductionDataProcessor, parse_int, parse_float
from utils import generate_time_slots, time_to_seconds

logger = logging.getLogger(__name__)

# A record belongs to a slot when it lies within 15 minutes of it
SLOT_TOLERANCE_SECONDS = 15 * 60


def partition(records: Iterable[ProductionRecord]) -> Dict[str, List[ProductionRecord]]:
    """
    Group records by line id.

    Groups appear in order of first occurrence; records keep input order.
    """
    groups: Dict[str, List[ProductionRecord]] = {}
    for record in records:
        groups.setdefault(record.line_id, []).append(record)
    return groups


def current_status(group: Sequence[ProductionRecord]) -> LineStatus:
    """
    Status of a line taken from its last row in file order.

    The last row wins even when an earlier row carries a later time of day.
    """
    if not group:
        return PLACEHOLDER_STATUS

    last = group[-1]
    return LineStatus(
        part_number=last.part_number,
        part_name=last.part_name,
        total_quantity_per_shift=last.total_quantity_per_shift,
        parts_per_hour=math.ceil(last.parts_per_hour),
        total_scrap=last.total_scrap,
        scrap_rate_percent=last.scrap_rate_percent
    )


def reconcile_time_grid(records: Sequence[ProductionRecord]) -> List[GraphPoint]:
    """
    Project a line's records onto the fixed half-hour grid.

    Records are first stable-sorted by time of day; for each slot the earliest
    record within 15 minutes of the slot supplies the value. A slot with no
    such record, or whose record has no positive rate, is left empty rather
    than zero.

    Args:
        records: One line's records, in file order

    Returns:
        36 GraphPoints in slot order
    """
    timed = [(time_to_seconds(record.time_of_day), record) for record in records]
    # Unparseable times sort last; they never match a slot
    timed.sort(key=lambda item: (item[0] is None, item[0] or 0))

    points = []
    for slot in generate_time_slots():
        slot_seconds = time_to_seconds(slot)
        match = next(
            (record for seconds, record in timed
             if seconds is not None and abs(slot_seconds - seconds) <= SLOT_TOLERANCE_SECONDS),
            None
        )

        value = None
        if match is not None and match.parts_per_hour > 0:
            value = int(math.floor(match.parts_per_hour + 0.5))
        points.append(GraphPoint(slot=slot, value=value))

    return points


def compute_aggregates(statuses: Iterable[LineStatus]) -> Aggregates:
    """Totals across lines; scrap rate is the plain mean of the line rates"""
    statuses = list(statuses)
    if not statuses:
        return Aggregates()

    total_quantity = sum(parse_int(s.total_quantity_per_shift) or 0 for s in statuses)
    total_scrap = sum(s.total_scrap for s in statuses)
    rates = [parse_float(s.scrap_rate_percent) or 0.0 for s in statuses]

    return Aggregates(
        total_quantity=total_quantity,
        total_scrap=total_scrap,
        average_scrap_rate=f"{sum(rates) / len(rates):.1f}"
    )


def build_line_view(line_id: str, group: Sequence[ProductionRecord]) -> LineView:
    return LineView(
        line_id=line_id,
        status=current_status(group),
        graph=reconcile_time_grid(group),
        record_count=len(group)
    )


def build_dashboard(
    rows: Iterable[Mapping[str, Any]],
    display_lines: Sequence[str],
    source_file: Optional[str] = None,
    refreshed_at: Optional[datetime] = None
) -> DashboardSnapshot:
    """
    Run decoded rows through the whole pipeline.

    Args:
        rows: Decoded row mappings, in file order
        display_lines: Line ids shown on the dashboard; aggregates span these
        source_file: Name of the uploaded file
        refreshed_at: Timestamp to stamp on the snapshot (defaults to now)

    Returns:
        DashboardSnapshot with one LineView per displayed line
    """
    records = ProductionDataProcessor.normalize_rows(rows)
    groups = partition(records)

    lines = {line_id: build_line_view(line_id, groups.get(line_id, [])) for line_id in display_lines}

    ignored = [line_id for line_id in groups if line_id not in lines]
    if ignored:
        logger.info(f"Rows for lines {ignored} are not displayed")

    snapshot = DashboardSnapshot(
        lines=lines,
        aggregates=compute_aggregates(view.status for view in lines.values()),
        refreshed_at=refreshed_at or datetime.now(),
        records=records,
        source_file=source_file
    )
    logger.info(
        f"Built dashboard from {len(records)} rows: "
        + ", ".join(f"line {line_id}={view.record_count}" for line_id, view in lines.items())
    )
    return snapshot
