from app.core.constants import TIME_SLOTS
from app.services.slot_report import SlotAvailabilityReporter
from conftest import NOW, RESERVATION_DATE, make_request


async def test_empty_day_has_every_slot_free(session, tables):
    slots = await SlotAvailabilityReporter.get_time_slot_availability(
        session,
        RESERVATION_DATE,
    )

    assert len(slots) == len(TIME_SLOTS) == 13
    assert slots[0].time == '12:00'
    assert slots[-1].time == '22:00'
    for slot in slots:
        assert slot.available
        assert slot.available_tables == 2
        assert slot.total_capacity == 6


async def test_reservation_blocks_overlapping_slots(
    session,
    single_table,
    service,
):
    await service.create(session, make_request(), now=NOW)

    slots = await SlotAvailabilityReporter.get_time_slot_availability(
        session,
        RESERVATION_DATE,
    )

    blocked = [slot.time for slot in slots if not slot.available]
    assert blocked == ['19:00', '19:30', '20:00', '20:30']


async def test_report_is_repeatable(session, single_table, service):
    await service.create(session, make_request(), now=NOW)

    first = await SlotAvailabilityReporter.get_time_slot_availability(
        session,
        RESERVATION_DATE,
    )
    second = await SlotAvailabilityReporter.get_time_slot_availability(
        session,
        RESERVATION_DATE,
    )

    assert first == second


async def test_large_party_sees_only_fitting_tables(session, tables):
    slots = await SlotAvailabilityReporter.get_time_slot_availability(
        session,
        RESERVATION_DATE,
        party_size=8,
    )

    assert all(slot.available_tables == 1 for slot in slots)
    assert all(slot.total_capacity == 8 for slot in slots)


async def test_available_tables_are_ranked_by_fit(session, tables, service):
    await service.create(
        session,
        make_request(party_size=2, start_time='12:00'),
        now=NOW,
    )

    free = await SlotAvailabilityReporter.get_available_tables(
        session,
        RESERVATION_DATE,
        '12:30',
        party_size=2,
    )
    later = await SlotAvailabilityReporter.get_available_tables(
        session,
        RESERVATION_DATE,
        '19:00',
        party_size=2,
    )

    assert [table.number for table in free] == [2]
    assert [table.number for table in later] == [1, 2]
