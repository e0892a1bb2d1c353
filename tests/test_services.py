"""
Tests for services.py

Partitioning by line, last-row status, the 36-slot grid and cross-line totals.
"""
from dataclasses import FrozenInstanceError

import pytest

from models import ProductionRecord, LineStatus, PLACEHOLDER_STATUS
from services import (
    partition, current_status, reconcile_time_grid, compute_aggregates,
    build_dashboard, SLOT_TOLERANCE_SECONDS
)
from utils import generate_time_slots
from conftest import make_row


def record(line='1', time_of_day='09:00:00', parts_per_hour=100.0, **kwargs):
    return ProductionRecord(line_id=line, time_of_day=time_of_day, parts_per_hour=parts_per_hour, **kwargs)


def values_by_slot(points):
    return {point.slot: point.value for point in points}


# ============================================================================
# partition / current_status
# ============================================================================

def test_partition_is_stable():
    records = [record('2', part_number='a'), record('1', part_number='b'),
               record('2', part_number='c'), record('3', part_number='d')]

    groups = partition(records)

    assert list(groups) == ['2', '1', '3']
    assert [r.part_number for r in groups['2']] == ['a', 'c']
    assert [r.part_number for r in groups['1']] == ['b']


def test_partition_uses_exact_string_match():
    groups = partition([record('1'), record('01'), record(' 1')])
    assert list(groups) == ['1', '01', ' 1']


def test_partition_empty():
    assert partition([]) == {}


def test_current_status_takes_last_row_not_latest_time():
    earlier_row = record(time_of_day='15:00:00', part_number='LATE-CLOCK')
    later_row = record(time_of_day='07:00:00', part_number='LAST-ROW')

    status = current_status([earlier_row, later_row])

    assert status.part_number == 'LAST-ROW'


def test_current_status_rounds_rate_up_and_passes_fields():
    status = current_status([record(
        parts_per_hour=99.2,
        part_number='PN-1',
        part_name='Bracket',
        total_quantity_per_shift='480',
        total_scrap=7,
        scrap_rate_percent='1.5'
    )])

    assert status == LineStatus(
        part_number='PN-1',
        part_name='Bracket',
        total_quantity_per_shift='480',
        parts_per_hour=100,
        total_scrap=7,
        scrap_rate_percent='1.5'
    )


def test_current_status_of_empty_group_is_placeholder():
    assert current_status([]) == PLACEHOLDER_STATUS


# ============================================================================
# reconcile_time_grid
# ============================================================================

def test_slots_are_fixed():
    slots = generate_time_slots()
    assert len(slots) == 36
    assert slots[0] == '06:00'
    assert slots[1] == '06:30'
    assert slots[-1] == '23:30'
    assert slots == sorted(slots)


@pytest.mark.parametrize("count", [0, 1, 50])
def test_grid_always_has_36_points(count):
    records = [record(time_of_day=f"{6 + i % 18:02d}:{(i * 7) % 60:02d}:00") for i in range(count)]

    points = reconcile_time_grid(records)

    assert [p.slot for p in points] == generate_time_slots()


def test_empty_input_gives_all_gaps():
    assert all(p.value is None for p in reconcile_time_grid([]))


def test_value_is_rounded_rate():
    values = values_by_slot(reconcile_time_grid([record(time_of_day='10:00:00', parts_per_hour=87.5)]))
    assert values['10:00'] == 88


def test_zero_rate_is_a_gap_not_zero():
    values = values_by_slot(reconcile_time_grid([record(time_of_day='11:30:00', parts_per_hour=0)]))
    assert values['11:30'] is None
    assert 0 not in values.values()


def test_tolerance_boundary():
    assert SLOT_TOLERANCE_SECONDS == 900
    inside = values_by_slot(reconcile_time_grid([record(time_of_day='12:15:00')]))
    outside = values_by_slot(reconcile_time_grid([record(time_of_day='12:15:01')]))

    # 12:15:00 is exactly 15 minutes from both 12:00 and 12:30
    assert inside['12:00'] == 100
    assert inside['12:30'] == 100
    assert outside['12:00'] is None
    assert outside['12:30'] == 100


def test_earliest_matching_record_wins():
    records = [record(time_of_day='09:10:00', parts_per_hour=50),
               record(time_of_day='08:50:00', parts_per_hour=120)]

    values = values_by_slot(reconcile_time_grid(records))

    # rows arrive out of time order; the slot takes the earlier reading
    assert values['09:00'] == 120


def test_equal_times_keep_file_order():
    records = [record(time_of_day='09:05:00', parts_per_hour=50),
               record(time_of_day='09:05:00', parts_per_hour=70)]

    values = values_by_slot(reconcile_time_grid(records))

    assert values['09:00'] == 50


def test_grid_sorting_leaves_status_on_last_row():
    group = [record(time_of_day='09:10:00', parts_per_hour=50, part_number='LAST-BY-TIME'),
             record(time_of_day='08:50:00', parts_per_hour=120, part_number='LAST-ROW')]

    reconcile_time_grid(group)

    assert [r.part_number for r in group] == ['LAST-BY-TIME', 'LAST-ROW']
    assert current_status(group).part_number == 'LAST-ROW'


def test_records_outside_grid_hours_are_ignored():
    values = values_by_slot(reconcile_time_grid([record(time_of_day='03:00:00')]))
    assert all(v is None for v in values.values())


def test_output_follows_grid_order_not_input_order():
    records = [record(time_of_day='20:00:00', parts_per_hour=20),
               record(time_of_day='07:00:00', parts_per_hour=7)]

    points = reconcile_time_grid(records)
    filled = [p.slot for p in points if p.value is not None]

    assert filled == ['07:00', '20:00']


# ============================================================================
# aggregates / build_dashboard
# ============================================================================

def test_aggregates():
    statuses = [
        LineStatus('a', 'A', '480', 100, 12, '2.0'),
        LineStatus('b', 'B', '320', 80, 3, '4.0'),
    ]

    totals = compute_aggregates(statuses)

    assert totals.total_quantity == 800
    assert totals.total_scrap == 15
    assert totals.average_scrap_rate == '3.0'


def test_aggregates_tolerate_unparseable_quantity():
    totals = compute_aggregates([LineStatus('a', 'A', 'n/a', 0, 0, '0.0'), PLACEHOLDER_STATUS])
    assert totals.total_quantity == 0
    assert totals.average_scrap_rate == '0.0'


def test_two_lines_end_to_end(two_line_rows):
    snapshot = build_dashboard(two_line_rows, ['1', '2'], source_file='shift.xlsx')

    line1 = values_by_slot(snapshot.lines['1'].graph)
    line2 = values_by_slot(snapshot.lines['2'].graph)

    assert line1['09:00'] == 120
    assert line2['09:00'] == 80
    assert sum(v is None for v in line1.values()) == 35
    assert sum(v is None for v in line2.values()) == 35
    assert snapshot.lines['2'].status.part_number == 'PN-200'
    assert snapshot.aggregates.total_quantity == 960
    assert snapshot.source_file == 'shift.xlsx'


def test_missing_display_line_gets_placeholder():
    snapshot = build_dashboard([make_row(line='1')], ['1', '2'])

    assert snapshot.lines['2'].status == PLACEHOLDER_STATUS
    assert snapshot.lines['2'].record_count == 0
    assert all(p.value is None for p in snapshot.lines['2'].graph)


def test_undisplayed_lines_are_kept_in_records():
    snapshot = build_dashboard([make_row(line='1'), make_row(line='7')], ['1', '2'])

    assert set(snapshot.lines) == {'1', '2'}
    assert [r.line_id for r in snapshot.records] == ['1', '7']


def test_snapshot_to_dict():
    payload = build_dashboard([make_row(line='1')], ['1']).to_dict(include_records=True)

    assert payload['record_count'] == 1
    assert len(payload['lines']['1']['graph']) == 36
    assert payload['lines']['1']['status']['partsPerHour'] == 120
    assert payload['records'][0]['Line'] == '1'


def test_placeholder_status_is_immutable():
    with pytest.raises(FrozenInstanceError):
        PLACEHOLDER_STATUS.part_number = 'PN-1'
