from datetime import datetime, time, timedelta

import pytest

from app.core.exceptions import ReservationValidationError
from app.schemas.reservation import ReservationUpdate
from app.services.reservation_policy import ReservationPolicy
from conftest import NOW, RESERVATION_DATE, make_request


def errors_for(**overrides):
    with pytest.raises(ReservationValidationError) as exc_info:
        ReservationPolicy.validate_request(make_request(**overrides), NOW)
    return exc_info.value.errors


def test_valid_request_is_normalized():
    cleaned = ReservationPolicy.validate_request(
        make_request(
            customer_name='  Анна Иванова ',
            customer_phone='+7 (916) 123-45-67',
            start_time='19:00',
        ),
        NOW,
    )

    assert cleaned['customer_name'] == 'Анна Иванова'
    assert cleaned['customer_phone'] == '+79161234567'
    assert cleaned['start_time'] == time(19, 0)


def test_all_violations_are_reported_together():
    errors = errors_for(
        customer_name='R2D2',
        customer_email='not-an-email',
        customer_phone='12345',
        party_size=0,
        start_time='07:00',
    )

    assert set(errors) == {
        'customer_name',
        'customer_email',
        'customer_phone',
        'party_size',
        'start_time',
    }


def test_empty_required_fields_are_reported():
    errors = errors_for(
        customer_name=' ',
        customer_email='',
        customer_phone='',
    )

    assert set(errors) == {
        'customer_name',
        'customer_email',
        'customer_phone',
    }


def test_past_date_is_rejected():
    errors = errors_for(reservation_date=NOW.date() - timedelta(days=1))

    assert 'reservation_date' in errors


@pytest.mark.parametrize('days, valid', [(60, True), (61, False)])
def test_booking_horizon(days, valid):
    request = make_request(reservation_date=NOW.date() + timedelta(days=days))
    if valid:
        ReservationPolicy.validate_request(request, NOW)
    else:
        with pytest.raises(ReservationValidationError):
            ReservationPolicy.validate_request(request, NOW)


@pytest.mark.parametrize(
    'start_time, valid',
    [
        ('07:59', False),
        ('08:00', True),
        ('22:59', True),
        ('23:00', False),
    ],
)
def test_business_hours_bound_the_start_time(start_time, valid):
    request = make_request(start_time=start_time)
    if valid:
        ReservationPolicy.validate_request(request, NOW)
    else:
        with pytest.raises(ReservationValidationError) as exc_info:
            ReservationPolicy.validate_request(request, NOW)
        assert 'start_time' in exc_info.value.errors


@pytest.mark.parametrize('party_size', [0, 21, -1])
def test_party_size_out_of_range(party_size):
    assert 'party_size' in errors_for(party_size=party_size)


@pytest.mark.parametrize('party_size', [1, 20])
def test_party_size_bounds_are_inclusive(party_size):
    request = make_request(party_size=party_size)

    ReservationPolicy.validate_request(request, NOW)


def test_time_already_passed_today_is_rejected():
    now = datetime.combine(RESERVATION_DATE, time(19, 30))

    with pytest.raises(ReservationValidationError) as exc_info:
        ReservationPolicy.validate_request(make_request(), now)

    assert 'start_time' in exc_info.value.errors


def test_malformed_time_is_a_validation_error():
    assert 'start_time' in errors_for(start_time='7pm')


@pytest.mark.parametrize(
    'phone',
    ['+70000000000', '+7111111111', '89161234567', '+0123456789'],
)
def test_suspicious_or_malformed_phone_numbers(phone):
    assert 'customer_phone' in errors_for(customer_phone=phone)


def test_name_allows_hyphen_and_apostrophe():
    cleaned = ReservationPolicy.validate_request(
        make_request(customer_name="Jean-Luc O'Neil"),
        NOW,
    )

    assert cleaned['customer_name'] == "Jean-Luc O'Neil"


def test_update_validates_only_provided_fields():
    cleaned = ReservationPolicy.validate_update(
        ReservationUpdate(special_requests=' У окна <b> '),
    )

    assert cleaned == {'special_requests': 'У окна b'}


def test_update_rejects_empty_contact():
    with pytest.raises(ReservationValidationError) as exc_info:
        ReservationPolicy.validate_update(ReservationUpdate(customer_email=''))

    assert 'customer_email' in exc_info.value.errors
