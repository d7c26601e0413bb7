# ========================================
# jobportal/schemas/job.py
# ========================================

from pydantic import BaseModel, Field
from typing import List, Optional, Any
from datetime import datetime


# 1. Input: What the Employer sends
class JobCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    requirements: List[str] = []
    salary: float = Field(..., gt=0)
    experience_level: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    job_type: str = Field(..., min_length=1)  # Full-time, Part-time, Internship, ...
    position: int = Field(..., ge=1)


# 2. Input: Update existing job
class JobUpdate(BaseModel):
    """Partial update. Setting is_open back to true reopens a closed job."""
    title: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[List[str]] = None
    salary: Optional[float] = Field(None, gt=0)
    experience_level: Optional[str] = None
    location: Optional[str] = None
    job_type: Optional[str] = None
    position: Optional[int] = Field(None, ge=1)
    is_open: Optional[bool] = None


# 3. Output
class JobResponse(BaseModel):
    id: str
    title: str
    description: str
    requirements: List[str] = []
    salary: float
    experience_level: str
    location: str
    job_type: str
    position: int
    is_open: bool = True
    # populated summary or bare id
    company: Optional[Any] = None
    created_by: Optional[Any] = None
    applications: List[str] = []
    applications_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StatusCount(BaseModel):
    status: str
    count: int


class JobAnalyticsResponse(BaseModel):
    job_id: str
    total: int
    stats: List[StatusCount]
