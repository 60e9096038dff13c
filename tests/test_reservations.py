from datetime import date, datetime, time

from types import SimpleNamespace

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError

from classbook.config import get_settings
from classbook.core import errors
from classbook.core.errors import (
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionFailedError,
)
from classbook.db import models
from classbook.services import reservation_service
from factories import add_reservation, create_class, create_user

# 1h before the 09:00 class on 2026-03-10, inside the booking window
BOOKING_NOW = datetime(2026, 3, 10, 8, 0)


def book(db_session, user, cls, now=BOOKING_NOW):
    return reservation_service.create_reservation(db_session, user, cls.id, now=now)


def test_capacity_rejects_exactly_when_full(db_session):
    cls = create_class(db_session, capacity=3)
    members = [create_user(db_session, name=f"Member {i}") for i in range(5)]

    for index, member in enumerate(members):
        if index < cls.capacity:
            book(db_session, member, cls)
            assert reservation_service.count_reservations(db_session, cls.id) == index + 1
        else:
            with pytest.raises(PreconditionFailedError) as exc_info:
                book(db_session, member, cls)
            assert exc_info.value.code == errors.CLASS_FULL
            assert reservation_service.count_reservations(db_session, cls.id) == cls.capacity


def test_capacity_counts_reservations_in_any_status(db_session, student):
    cls = create_class(db_session, capacity=2)
    add_reservation(db_session, create_user(db_session, "A"), cls, models.ReservationStatus.checked_in)
    add_reservation(db_session, create_user(db_session, "B"), cls, models.ReservationStatus.no_show)

    with pytest.raises(PreconditionFailedError) as exc_info:
        book(db_session, student, cls)
    assert exc_info.value.code == errors.CLASS_FULL


def test_single_active_booking_flow(db_session, student):
    class_a = create_class(db_session, class_time=time(9, 0), title="A")
    class_b = create_class(db_session, class_time=time(10, 0), title="B")

    reservation_a = book(db_session, student, class_a)
    assert reservation_a.status == models.ReservationStatus.booked
    assert reservation_a.class_date == class_a.date
    assert reservation_a.class_time == class_a.time

    with pytest.raises(PreconditionFailedError) as exc_info:
        book(db_session, student, class_b)
    assert exc_info.value.code == errors.ACTIVE_BOOKING_EXISTS

    assert reservation_service.cancel_reservation(db_session, student, reservation_a.id)
    reservation_b = book(db_session, student, class_b)
    assert reservation_b.class_id == class_b.id


def test_booking_allowed_once_previous_class_has_ended(db_session, student):
    morning = create_class(db_session, class_time=time(7, 0))
    add_reservation(db_session, student, morning)
    later = create_class(db_session, class_time=time(18, 0))

    reservation = book(db_session, student, later, now=datetime(2026, 3, 10, 8, 1))

    assert reservation.class_id == later.id


def test_reservation_missing_schedule_counts_as_active(db_session, student):
    legacy = create_class(db_session, class_date=date(2026, 1, 1))
    add_reservation(db_session, student, legacy, class_date=None, class_time=None)
    cls = create_class(db_session)

    with pytest.raises(PreconditionFailedError) as exc_info:
        book(db_session, student, cls)
    assert exc_info.value.code == errors.ACTIVE_BOOKING_EXISTS


def test_duplicate_booking_rejected(db_session, student):
    cls = create_class(db_session)
    add_reservation(db_session, student, cls, models.ReservationStatus.checked_in)

    with pytest.raises(PreconditionFailedError) as exc_info:
        book(db_session, student, cls)
    assert exc_info.value.code == errors.ALREADY_BOOKED


def test_booking_window_enforced(db_session, student):
    cls = create_class(db_session)

    with pytest.raises(PreconditionFailedError) as too_early:
        book(db_session, student, cls, now=datetime(2026, 3, 9, 20, 0))
    assert too_early.value.code == errors.BOOKING_NOT_OPEN

    with pytest.raises(PreconditionFailedError) as too_late:
        book(db_session, student, cls, now=datetime(2026, 3, 10, 8, 50))
    assert too_late.value.code == errors.BOOKING_CLOSED


def test_booking_window_can_be_disabled(db_session, student, monkeypatch):
    monkeypatch.setenv("BOOKING_WINDOW_ENFORCED", "false")
    get_settings.cache_clear()
    try:
        cls = create_class(db_session)
        reservation = book(db_session, student, cls, now=datetime(2026, 3, 1, 8, 0))
        assert reservation.status == models.ReservationStatus.booked
    finally:
        get_settings.cache_clear()


def test_booking_for_someone_else_requires_admin(db_session, student, admin):
    other = create_user(db_session, name="Other")
    cls = create_class(db_session)

    with pytest.raises(PermissionDeniedError):
        reservation_service.create_reservation(db_session, student, cls.id, other.id, now=BOOKING_NOW)

    reservation = reservation_service.create_reservation(
        db_session, admin, cls.id, other.id, now=BOOKING_NOW
    )
    assert reservation.user_id == other.id


def test_booking_unknown_class(db_session, student):
    with pytest.raises(NotFoundError):
        reservation_service.create_reservation(db_session, student, 999, now=BOOKING_NOW)


def test_cancel_is_owner_or_admin_and_idempotent(db_session, student, admin):
    stranger = create_user(db_session, name="Stranger")
    cls = create_class(db_session)
    reservation = add_reservation(db_session, student, cls, models.ReservationStatus.no_show)
    reservation_id = reservation.id

    with pytest.raises(PermissionDeniedError):
        reservation_service.cancel_reservation(db_session, stranger, reservation_id)

    assert reservation_service.cancel_reservation(db_session, admin, reservation_id) is True
    assert reservation_service.cancel_reservation(db_session, student, reservation_id) is False
    assert reservation_service.count_reservations(db_session, cls.id) == 0


def test_count_active_reservations(db_session, student, admin):
    past = create_class(db_session, class_date=date(2026, 3, 9))
    today = create_class(db_session, class_time=time(18, 0))
    checked = create_class(db_session, class_time=time(19, 0))
    add_reservation(db_session, student, past)
    add_reservation(db_session, student, today)
    add_reservation(db_session, student, checked, models.ReservationStatus.checked_in)
    now = datetime(2026, 3, 10, 12, 0)

    assert reservation_service.count_active_reservations(db_session, student, student.id, now=now) == 1
    assert reservation_service.count_active_reservations(db_session, admin, student.id, now=now) == 1
    with pytest.raises(PermissionDeniedError):
        reservation_service.count_active_reservations(
            db_session, create_user(db_session, "Nosy"), student.id, now=now
        )


def test_get_reservation_for_user_and_class(db_session, student):
    cls = create_class(db_session)
    assert reservation_service.get_reservation_for_user_and_class(db_session, cls.id, student.id) is None
    reservation = add_reservation(db_session, student, cls)

    found = reservation_service.get_reservation_for_user_and_class(db_session, cls.id, student.id)

    assert found.id == reservation.id


def test_history_pages_newest_first(db_session, student):
    reservations = []
    for day in range(1, 8):
        cls = create_class(db_session, class_date=date(2026, 3, day))
        reservations.append(add_reservation(db_session, student, cls, models.ReservationStatus.checked_in))
    future = create_class(db_session, class_date=date(2026, 3, 20))
    add_reservation(db_session, student, future)
    now = datetime(2026, 3, 7, 9, 30)

    first = reservation_service.list_past_reservations(db_session, student, student.id, 3, now=now)
    assert [r.class_date.day for r in first.items] == [7, 6, 5]
    assert first.next_cursor is not None
    assert first.items[0].class_over is False
    assert first.items[1].class_over is True

    second = reservation_service.list_past_reservations(
        db_session, student, student.id, 3, first.next_cursor, now=now
    )
    assert [r.class_date.day for r in second.items] == [4, 3, 2]

    third = reservation_service.list_past_reservations(
        db_session, student, student.id, 3, second.next_cursor, now=now
    )
    assert [r.class_date.day for r in third.items] == [1]
    assert third.next_cursor is None


def test_history_rejects_bad_input(db_session, student):
    with pytest.raises(InvalidInputError):
        reservation_service.list_past_reservations(db_session, student, student.id, 0)
    with pytest.raises(InvalidInputError):
        reservation_service.list_past_reservations(db_session, student, student.id, 10, "%%%")
    with pytest.raises(PermissionDeniedError):
        reservation_service.list_past_reservations(
            db_session, create_user(db_session, "Nosy"), student.id, 10
        )


def test_booking_locks_class_and_member_rows():
    dialect = postgresql.dialect()

    for query in (
        reservation_service.class_lock_query(1),
        reservation_service.user_lock_query(1),
    ):
        assert str(query.compile(dialect=dialect)).rstrip().endswith("FOR UPDATE")


def test_unique_violation_after_check_maps_to_already_booked(db_session, student, monkeypatch):
    cls = create_class(db_session)
    # A concurrent request inserted the same (user, class) pair after our duplicate check
    add_reservation(db_session, student, cls, models.ReservationStatus.checked_in)
    monkeypatch.setattr(
        reservation_service,
        "get_reservation_for_user_and_class",
        lambda db, class_id, user_id: None,
    )

    with pytest.raises(PreconditionFailedError) as exc_info:
        book(db_session, student, cls)

    assert exc_info.value.code == errors.ALREADY_BOOKED
    assert reservation_service.count_reservations(db_session, cls.id) == 1


def test_duplicate_detection_reads_postgres_constraint_name():
    def integrity_error(constraint_name):
        orig = SimpleNamespace(diag=SimpleNamespace(constraint_name=constraint_name))
        return IntegrityError("INSERT INTO reservations", {}, orig)

    assert reservation_service._is_duplicate_booking(integrity_error("uq_reservation_user_class"))
    assert not reservation_service._is_duplicate_booking(integrity_error("reservations_user_id_fkey"))
