from datetime import date, time

from classbook.core import security
from classbook.db import models


def create_user(session, name="Aluno", role=models.UserRole.student, email=None):
    user = models.User(
        name=name,
        email=email or f"{name.lower().replace(' ', '.')}@box.test",
        password_hash="not-a-real-hash",
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def create_class(
    session,
    class_date=date(2026, 3, 10),
    class_time=time(9, 0),
    capacity=10,
    title="WOD",
):
    cls = models.ClassSession(
        title=title,
        coach_name="Coach Ana",
        date=class_date,
        time=class_time,
        capacity=capacity,
    )
    session.add(cls)
    session.commit()
    session.refresh(cls)
    return cls


def add_reservation(session, user, cls, status=models.ReservationStatus.booked, **fields):
    reservation = models.Reservation(
        user_id=user.id,
        class_id=cls.id,
        status=status,
        class_date=fields.pop("class_date", cls.date),
        class_time=fields.pop("class_time", cls.time),
        **fields,
    )
    session.add(reservation)
    session.commit()
    session.refresh(reservation)
    return reservation


def auth_headers(user):
    token = security.create_user_token(user)
    return {"Authorization": f"Bearer {token}"}
