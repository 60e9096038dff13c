from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from ...api import deps
from ...db.session import get_db
from ...db import models, schemas

router = APIRouter(prefix="/box", tags=["box"])


def _get_box(db: Session) -> models.Box:
    box = db.query(models.Box).order_by(models.Box.id).first()
    if not box:
        raise HTTPException(status_code=404, detail="Box not configured")
    return box


@router.get("", response_model=schemas.Box)
def get_box(
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.get_current_user),
):
    return _get_box(db)


@router.patch("", response_model=schemas.Box)
def update_box(
    payload: schemas.BoxUpdate,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_admin),
):
    box = _get_box(db)
    for key, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(box, key, value)
    db.commit()
    db.refresh(box)
    return box
