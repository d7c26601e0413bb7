# ========================================
# jobportal/schemas/application.py
# ========================================

from pydantic import BaseModel
from typing import Optional, Any, List, Literal
from datetime import datetime

ApplicationStatus = Literal["pending", "accepted", "rejected"]


# 1. Input: Update Status
class ApplicationStatusUpdate(BaseModel):
    # Left as str so unknown values get the 400 "Invalid status" answer
    status: str


# 2. Output: Basic Response
class ApplicationResponse(BaseModel):
    id: str
    job: Optional[Any] = None
    applicant: Optional[Any] = None
    status: ApplicationStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ApplicationMessage(BaseModel):
    message: str
    application: ApplicationResponse


class MyApplicationsResponse(BaseModel):
    applications: List[ApplicationResponse]


# 3. Output: Paginated list for an employer
class Pagination(BaseModel):
    total: int
    page: int
    pages: int


class JobApplicationsResponse(BaseModel):
    applications: List[ApplicationResponse]
    pagination: Pagination
