import asyncio
import uuid
from datetime import datetime, time

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import (
    AuthorizationError,
    CancellationWindowError,
    InvalidStatusTransitionError,
    NoAvailabilityError,
    NotFoundError,
    ReservationValidationError,
    SuspiciousRequestError,
)
from app.repositories.reservation import reservation_repository
from app.schemas.availability import AvailabilityResult
from app.schemas.reservation import ReservationUpdate
from app.services import send_email_service
from app.services.abuse_check import AbuseChecker
from app.services.availability_service import AvailabilityService
from app.services.reservation_service import ReservationService
from app.services.slot_lock import SlotLockRegistry
from app.utils.enums import ReservationStatus
from conftest import NOW, RESERVATION_DATE, make_request


async def test_end_to_end_reservation_and_double_booking(
    session,
    single_table,
    service,
):
    reservation = await service.create(session, make_request(), now=NOW)

    assert reservation.table_id == single_table[0].id
    assert reservation.start_time == time(19, 0)
    assert reservation.end_time == time(20, 45)
    assert reservation.status == ReservationStatus.CONFIRMED
    assert reservation.table.number == 2

    with pytest.raises(NoAvailabilityError):
        await service.create(session, make_request(), now=NOW)


async def test_cancelled_slot_can_be_booked_again(
    session,
    single_table,
    service,
    manager,
):
    first = await service.create(session, make_request(), now=NOW)
    await service.cancel(session, first.id, manager, now=NOW)

    second = await service.create(session, make_request(), now=NOW)

    assert second.table_id == first.table_id
    assert second.id != first.id


async def test_back_to_back_reservations_share_a_table(
    session,
    single_table,
    service,
):
    await service.create(session, make_request(start_time='19:00'), now=NOW)
    later = await service.create(
        session,
        make_request(start_time='20:45'),
        now=NOW,
    )

    assert later.table_id == single_table[0].id


async def test_validation_errors_are_raised_before_assignment(
    session,
    single_table,
    service,
):
    with pytest.raises(ReservationValidationError):
        await service.create(session, make_request(party_size=25), now=NOW)

    assert await reservation_repository.get_multi_by_date(
        session,
        RESERVATION_DATE,
    ) == []


async def test_concurrent_requests_for_one_table_book_it_once(
    session_factory,
    single_table,
    service,
):
    async def attempt():
        async with session_factory() as session:
            return await service.create(session, make_request(), now=NOW)

    results = await asyncio.gather(
        *(attempt() for _ in range(5)),
        return_exceptions=True,
    )

    booked = [r for r in results if not isinstance(r, Exception)]
    refused = [r for r in results if isinstance(r, NoAvailabilityError)]
    assert len(booked) == 1
    assert len(refused) == 4


async def test_unique_slot_index_rejects_second_active_row(
    session,
    single_table,
):
    data = {
        'table_id': single_table[0].id,
        'customer_name': 'Анна Иванова',
        'customer_email': 'anna.ivanova@gmail.com',
        'customer_phone': '+79161234567',
        'reservation_date': RESERVATION_DATE,
        'start_time': time(19, 0),
        'end_time': time(20, 45),
        'party_size': 2,
        'status': ReservationStatus.CONFIRMED,
    }
    await reservation_repository.insert(session, dict(data))

    with pytest.raises(IntegrityError):
        await reservation_repository.insert(session, dict(data))
    await session.rollback()


def report_every_table_free(monkeypatch):
    """Проверка доступности видит все столы свободными.

    Запись на занятый стол тогда отклоняет только уникальный индекс.
    """

    async def report_free(*args, **kwargs):
        return AvailabilityResult(available=True)

    monkeypatch.setattr(
        AvailabilityService,
        'is_table_available',
        staticmethod(report_free),
    )


async def test_storage_conflict_becomes_no_availability(
    session,
    single_table,
    service,
    monkeypatch,
):
    await service.create(session, make_request(), now=NOW)
    report_every_table_free(monkeypatch)

    with pytest.raises(NoAvailabilityError):
        await service.create(session, make_request(), now=NOW)


async def test_logged_in_user_moves_to_next_table_after_conflict(
    session,
    tables,
    service,
    customer,
    monkeypatch,
):
    customer_id = customer.id
    occupied = await service.create(session, make_request(), now=NOW)
    assert occupied.table.number == 2
    report_every_table_free(monkeypatch)

    reservation = await service.create(
        session,
        make_request(),
        user=customer,
        now=NOW,
    )

    assert reservation.table.number == 3
    assert reservation.user_id == customer_id


async def test_conflicts_are_retried_while_tables_remain(
    session,
    tables,
    service,
    monkeypatch,
):
    first = await service.create(session, make_request(), now=NOW)
    second = await service.create(session, make_request(), now=NOW)
    assert [first.table.number, second.table.number] == [2, 3]
    report_every_table_free(monkeypatch)

    third = await service.create(session, make_request(), now=NOW)

    assert third.table.number == 4
    with pytest.raises(NoAvailabilityError):
        await service.create(session, make_request(), now=NOW)


async def test_confirmation_email_is_queued(
    session,
    single_table,
    service,
    sent_emails,
):
    await service.create(session, make_request(), now=NOW)

    subjects = [email['subject'] for email in sent_emails]
    assert 'Бронирование подтверждено' in subjects
    assert 'Напоминание о бронировании' in subjects
    assert sent_emails[0]['recipients'] == ['anna.ivanova@gmail.com']


async def test_email_failure_does_not_fail_reservation(
    session,
    single_table,
    service,
    monkeypatch,
):
    def broken(*args, **kwargs):
        raise ConnectionError('broker is down')

    monkeypatch.setattr(send_email_service, 'enqueue_email', broken)

    reservation = await service.create(session, make_request(), now=NOW)

    assert reservation.status == ReservationStatus.CONFIRMED


async def test_suspicious_request_is_rejected(session, single_table):
    strict = ReservationService(
        locks=SlotLockRegistry(),
        abuse=AbuseChecker(enabled=True, threshold=60),
    )
    request = make_request(
        customer_email='anna@mailinator.com',
        special_requests='Скидки тут http://spam.example',
    )

    with pytest.raises(SuspiciousRequestError):
        await strict.create(session, request, now=NOW)


@pytest.mark.parametrize(
    'cancel_at, allowed',
    [
        (datetime(2024, 1, 15, 16, 59), True),
        (datetime(2024, 1, 15, 17, 0), True),
        (datetime(2024, 1, 15, 17, 1), False),
    ],
)
async def test_customer_cancellation_cutoff(
    session,
    single_table,
    service,
    customer,
    cancel_at,
    allowed,
):
    reservation = await service.create(
        session,
        make_request(),
        user=customer,
        now=NOW,
    )

    if allowed:
        cancelled = await service.cancel(
            session,
            reservation.id,
            customer,
            now=cancel_at,
        )
        assert cancelled.status == ReservationStatus.CANCELLED
    else:
        with pytest.raises(CancellationWindowError):
            await service.cancel(
                session,
                reservation.id,
                customer,
                now=cancel_at,
            )


async def test_staff_can_cancel_inside_cutoff(
    session,
    single_table,
    service,
    customer,
    manager,
    sent_emails,
):
    reservation = await service.create(
        session,
        make_request(),
        user=customer,
        now=NOW,
    )

    cancelled = await service.cancel(
        session,
        reservation.id,
        manager,
        now=datetime(2024, 1, 15, 18, 30),
    )

    assert cancelled.status == ReservationStatus.CANCELLED
    assert sent_emails[-1]['subject'] == 'Бронирование отменено'


async def test_customer_cannot_touch_foreign_reservation(
    session,
    single_table,
    service,
    customer,
    other_customer,
):
    reservation = await service.create(
        session,
        make_request(),
        user=customer,
        now=NOW,
    )

    with pytest.raises(AuthorizationError):
        await service.cancel(session, reservation.id, other_customer, now=NOW)
    with pytest.raises(AuthorizationError):
        await service.get(session, reservation.id, other_customer)


async def test_guest_reservation_is_not_cancellable_without_staff(
    session,
    single_table,
    service,
):
    reservation = await service.create(session, make_request(), now=NOW)

    with pytest.raises(AuthorizationError):
        await service.cancel(session, reservation.id, None, now=NOW)


async def test_cancelling_twice_is_an_invalid_transition(
    session,
    single_table,
    service,
    manager,
):
    reservation = await service.create(session, make_request(), now=NOW)
    await service.cancel(session, reservation.id, manager, now=NOW)

    with pytest.raises(InvalidStatusTransitionError):
        await service.cancel(session, reservation.id, manager, now=NOW)


async def test_unknown_reservation_is_not_found(session, service, manager):
    with pytest.raises(NotFoundError):
        await service.get(session, uuid.uuid4(), manager)


async def test_visit_lifecycle(session, single_table, service, manager):
    reservation = await service.create(session, make_request(), now=NOW)

    seated = await service.mark_arrived(
        session,
        reservation.id,
        manager,
        arrival_time=datetime(2024, 1, 15, 19, 10),
    )
    assert seated.status == ReservationStatus.SEATED
    assert seated.is_late_arrival is False

    completed = await service.mark_completed(
        session,
        reservation.id,
        manager,
        now=datetime(2024, 1, 15, 20, 40),
    )
    assert completed.status == ReservationStatus.COMPLETED
    assert completed.actual_departure_time is not None

    free_again = await AvailabilityService.is_table_available(
        session,
        single_table[0].id,
        RESERVATION_DATE,
        '19:00',
    )
    assert free_again.available


async def test_late_arrival_is_flagged(
    session,
    single_table,
    service,
    manager,
):
    reservation = await service.create(session, make_request(), now=NOW)

    seated = await service.mark_arrived(
        session,
        reservation.id,
        manager,
        arrival_time=datetime(2024, 1, 15, 19, 16),
    )

    assert seated.status == ReservationStatus.SEATED
    assert seated.is_late_arrival is True


async def test_no_show_frees_the_table(
    session,
    single_table,
    service,
    manager,
):
    reservation = await service.create(session, make_request(), now=NOW)

    no_show = await service.mark_no_show(session, reservation.id, manager)

    assert no_show.status == ReservationStatus.NO_SHOW
    with pytest.raises(InvalidStatusTransitionError):
        await service.mark_arrived(session, reservation.id, manager)


async def test_update_changes_contacts_only(
    session,
    single_table,
    service,
    customer,
):
    reservation = await service.create(
        session,
        make_request(),
        user=customer,
        now=NOW,
    )

    updated = await service.update(
        session,
        reservation.id,
        ReservationUpdate(customer_phone='+7 916 765-43-21'),
        customer,
    )

    assert updated.customer_phone == '+79167654321'
    assert updated.start_time == time(19, 0)


async def test_lists_for_user_and_date(
    session,
    tables,
    service,
    customer,
):
    await service.create(session, make_request(), user=customer, now=NOW)
    await service.create(
        session,
        make_request(party_size=2, start_time='12:00'),
        now=NOW,
    )

    mine = await service.list_for_user(session, customer)
    day = await service.list_for_date(session, RESERVATION_DATE)

    assert len(mine) == 1
    assert [r.start_time for r in day] == [time(12, 0), time(19, 0)]
