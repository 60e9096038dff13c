import logging
from sqlalchemy.orm import Session

from ..core import security
from ..db import models

logger = logging.getLogger(__name__)


def _ensure_box(session: Session, owner: models.User, box_name: str) -> None:
    box = session.query(models.Box).order_by(models.Box.id).first()
    if box is None:
        session.add(models.Box(name=box_name, address="", owner_id=owner.id))
        logger.info("Created box '%s'", box_name)
    elif box.owner_id is None:
        box.owner_id = owner.id


def ensure_admin_exists(
    session: Session, email: str, password: str, box_name: str = "Meu Box CrossFit"
) -> models.User:
    """Bootstrap path: the only place an admin account is ever created."""
    email = email.strip().lower()
    admin = session.query(models.User).filter_by(email=email).first()
    if admin:
        updated = False
        if not security.verify_password(password, admin.password_hash):
            admin.password_hash = security.get_password_hash(password)
            updated = True
        if admin.role != models.UserRole.admin:
            admin.role = models.UserRole.admin
            updated = True
        _ensure_box(session, admin, box_name)
        session.commit()
        if updated:
            logger.info("Updated default admin user '%s'", email)
        else:
            logger.info("Admin user '%s' already exists", email)
        return admin

    admin = models.User(
        name="Admin",
        email=email,
        password_hash=security.get_password_hash(password),
        role=models.UserRole.admin,
    )
    session.add(admin)
    session.flush()
    _ensure_box(session, admin, box_name)
    session.commit()
    logger.info("Created default admin user '%s'", email)
    return admin
