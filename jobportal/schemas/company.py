from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class CompanyResponse(BaseModel):
    """Company as returned to its owner and to admins"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    logo: str = ""
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
