from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from odontoped.db.session import get_db
from odontoped.deps import get_current_user, require_admin
from odontoped.models.audit_log import AuditAction, AuditEntity
from odontoped.models.site_settings import SiteSettings
from odontoped.models.user import User
from odontoped.schemas.site_settings import SiteSettingsOut, SiteSettingsUpdate
from odontoped.services.audit import log_event, snapshot_model

router = APIRouter(prefix="/settings", tags=["settings"])


def _current_site_settings(db: Session) -> SiteSettings | None:
    return db.scalar(select(SiteSettings).order_by(SiteSettings.id.asc()).limit(1))


@router.get("/site", response_model=SiteSettingsOut)
def get_site_settings(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    site = _current_site_settings(db)
    if site:
        return site
    return SiteSettingsOut()


@router.put("/site", response_model=SiteSettingsOut)
def update_site_settings(
    payload: SiteSettingsUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
    request_id: str | None = Header(default=None),
):
    site = _current_site_settings(db)
    before_data = snapshot_model(site)
    if site is None:
        site = SiteSettings()
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(site, field, value)
    db.add(site)
    db.flush()
    log_event(
        db,
        actor=user,
        action=AuditAction.update,
        entity_type=AuditEntity.site_settings,
        entity_id=str(site.id),
        before_data=before_data,
        after_obj=site,
        request_id=request_id,
        ip_address=request.client.host if request.client else None,
    )
    db.commit()
    db.refresh(site)
    return site
