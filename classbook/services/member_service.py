from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core import permissions, security
from ..core.constants import MEMBER_DELETED_ACTION
from ..core.errors import InvalidInputError, NotFoundError, PermissionDeniedError
from ..db import models, schemas

logger = logging.getLogger(__name__)


def _normalize_email(email: str | None) -> str:
    email = (email or "").strip().lower()
    if "@" not in email:
        raise InvalidInputError("A valid email is required")
    return email


def _email_taken(db: Session, email: str, exclude_id: int | None = None) -> bool:
    stmt = select(models.User.id).where(models.User.email == email)
    if exclude_id is not None:
        stmt = stmt.where(models.User.id != exclude_id)
    return db.execute(stmt).first() is not None


def create_member(db: Session, actor: models.User, payload: schemas.UserCreate) -> models.User:
    permissions.ensure_admin(actor)
    name = payload.name.strip()
    if not name or not payload.password:
        raise InvalidInputError("Name, email and password are required")
    email = _normalize_email(payload.email)
    if _email_taken(db, email):
        raise InvalidInputError("Email already registered")
    role = permissions.clamp_member_role(payload.role)
    if role.value != payload.role:
        logger.warning(
            "Requested role clamped",
            extra={"requested": payload.role, "assigned": role.value, "actor_id": actor.id},
        )
    member = models.User(
        name=name,
        email=email,
        password_hash=security.get_password_hash(payload.password),
        role=role,
        phone=payload.phone,
        birth_date=payload.birth_date,
        plan=payload.plan,
        enrollment_active=payload.enrollment_active,
    )
    db.add(member)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise InvalidInputError("Email already registered") from exc
    db.refresh(member)
    logger.info("Member created", extra={"user_id": member.id, "role": role.value})
    return member


def list_members(
    db: Session, actor: models.User, role: models.UserRole | None = None
) -> list[models.User]:
    permissions.ensure_admin(actor)
    query = db.query(models.User)
    if role is not None:
        query = query.filter(models.User.role == role)
    return query.order_by(models.User.name.asc()).all()


def get_member(db: Session, actor: models.User, user_id: int) -> models.User:
    permissions.ensure_self_or_admin(actor, user_id)
    user = db.get(models.User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def update_member(
    db: Session, actor: models.User, user_id: int, payload: schemas.UserUpdate
) -> models.User:
    permissions.ensure_admin(actor)
    user = db.get(models.User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes:
        if not (changes["name"] or "").strip():
            raise InvalidInputError("Name cannot be empty")
        changes["name"] = changes["name"].strip()
    if "email" in changes:
        changes["email"] = _normalize_email(changes["email"])
        if _email_taken(db, changes["email"], exclude_id=user.id):
            raise InvalidInputError("Email already registered")
    if "role" in changes:
        if user.role == models.UserRole.admin:
            # Existing admins keep their role; demotion is not offered here
            changes.pop("role")
        else:
            changes["role"] = permissions.clamp_member_role(changes["role"])
    password = changes.pop("password", None)
    if password:
        user.password_hash = security.get_password_hash(password)
    for key, value in changes.items():
        setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return user


def delete_member(db: Session, actor: models.User, user_id: int) -> None:
    """Remove a member with their reservations and personal records, all or nothing."""
    permissions.ensure_admin(actor)
    if actor.id == user_id:
        raise PermissionDeniedError("Admins cannot delete their own account")
    user = db.get(models.User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    try:
        reservations = db.execute(
            delete(models.Reservation).where(models.Reservation.user_id == user_id)
        ).rowcount or 0
        records = db.execute(
            delete(models.PersonalRecord).where(models.PersonalRecord.user_id == user_id)
        ).rowcount or 0
        db.delete(user)
        db.add(
            models.AuditLog(
                actor_type=models.ActorType.admin,
                actor_id=actor.id,
                action=MEMBER_DELETED_ACTION,
                payload={
                    "user_id": user_id,
                    "email": user.email,
                    "reservations_removed": reservations,
                    "personal_records_removed": records,
                },
            )
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to delete member", extra={"user_id": user_id})
        raise
    logger.info("Member deleted", extra={"user_id": user_id, "actor_id": actor.id})
