# ========================================
# jobportal/schemas/admin.py
# ========================================

from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

from jobportal.schemas.application import Pagination
from jobportal.schemas.user import UserResponse


class AdminStats(BaseModel):
    """Platform-wide counters"""
    total_users: int
    total_jobs: int
    total_applications: int
    total_companies: int
    candidates: int
    employers: int


class AdminStatsResponse(BaseModel):
    success: bool = True
    stats: AdminStats


class UserListResponse(BaseModel):
    users: List[UserResponse]
    pagination: Pagination


class AuditLogResponse(BaseModel):
    """One admin action"""
    id: str
    action: str
    admin_id: str
    admin_name: Optional[str] = None
    target_type: str
    target_id: Optional[str] = None
    details: Optional[dict] = None
    timestamp: datetime
