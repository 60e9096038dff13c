from __future__ import annotations

from sqlalchemy.orm import Session

from ..core import permissions
from ..core.errors import NotFoundError
from ..db import models, schemas


def list_user_prs(db: Session, actor: models.User, user_id: int) -> list[models.PersonalRecord]:
    permissions.ensure_self_or_admin(actor, user_id)
    return (
        db.query(models.PersonalRecord)
        .filter(models.PersonalRecord.user_id == user_id)
        .order_by(models.PersonalRecord.created_at.desc(), models.PersonalRecord.id.desc())
        .all()
    )


def create_pr(
    db: Session, actor: models.User, user_id: int, payload: schemas.PersonalRecordCreate
) -> models.PersonalRecord:
    permissions.ensure_self_or_admin(actor, user_id)
    if db.get(models.User, user_id) is None:
        raise NotFoundError("User not found")
    record = models.PersonalRecord(
        user_id=user_id,
        movement=payload.movement.strip(),
        value=payload.value.strip(),
        unit=payload.unit,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def _owned_record(db: Session, actor: models.User, record_id: int) -> models.PersonalRecord:
    record = db.get(models.PersonalRecord, record_id)
    if record is None:
        raise NotFoundError("Personal record not found")
    permissions.ensure_self_or_admin(actor, record.user_id)
    return record


def update_pr(
    db: Session, actor: models.User, record_id: int, payload: schemas.PersonalRecordUpdate
) -> models.PersonalRecord:
    record = _owned_record(db, actor, record_id)
    record.value = payload.value.strip()
    record.unit = payload.unit
    db.commit()
    db.refresh(record)
    return record


def delete_pr(db: Session, actor: models.User, record_id: int) -> None:
    record = _owned_record(db, actor, record_id)
    db.delete(record)
    db.commit()
