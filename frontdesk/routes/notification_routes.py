from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from frontdesk.auth.dependencies import get_current_user
from frontdesk.models.notification import Notification
from frontdesk.models.user import User
from frontdesk.routes.common import DATABASE_UNAVAILABLE_DETAIL, ensure_database_ready, get_db

router = APIRouter(tags=['notifications'])


class NotificationResponse(BaseModel):
    id: int
    title: str
    message: str
    is_read: bool
    created_at: datetime
    appointment_id: int | None = None

    class Config:
        from_attributes = True


@router.get('', response_model=list[NotificationResponse])
def list_my_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_database_ready()

    try:
        return db.query(Notification).filter(
            Notification.patient_id == current_user.id,
        ).order_by(Notification.created_at.desc(), Notification.id.desc()).all()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


@router.put('/{notification_id}/read', response_model=NotificationResponse)
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_database_ready()

    try:
        notification = db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.patient_id == current_user.id,
        ).first()

        if not notification:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Notification not found.',
            )

        notification.is_read = True
        db.commit()
        db.refresh(notification)

        return notification
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc
