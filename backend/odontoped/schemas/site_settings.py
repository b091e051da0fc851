from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SiteSettingsBase(BaseModel):
    meta_title: Optional[str] = Field(default=None, max_length=200)
    meta_description: Optional[str] = Field(default=None, max_length=500)
    about_text: Optional[str] = None
    services_text: Optional[str] = None
    convenios_text: Optional[str] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    accent_color: Optional[str] = None


class SiteSettingsUpdate(SiteSettingsBase):
    pass


class SiteSettingsOut(SiteSettingsBase):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    updated_at: Optional[datetime] = None
