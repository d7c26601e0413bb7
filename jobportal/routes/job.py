# ========================================
# jobportal/routes/job.py
# ========================================

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from typing import List, Optional

from jobportal.database import get_db
from jobportal.schemas.job import JobCreate, JobUpdate, JobResponse, JobAnalyticsResponse
from jobportal.services import jobs as job_service
from jobportal.utils.auth import employer_required

router = APIRouter(prefix="/jobs", tags=["Jobs"])

# ===========================
# PUBLIC ENDPOINTS
# ===========================

# ✅ 1. GET ALL JOBS WITH SEARCH AND FILTERS (Public)
@router.get("", response_model=List[JobResponse])
async def get_all_jobs(
    search: Optional[str] = Query(None, description="Search in title or description"),
    location: Optional[str] = Query(None, description="Filter by location"),
    job_type: Optional[str] = Query(None, description="Filter by job type"),
    is_open: Optional[bool] = Query(None, description="Only open (true) or closed (false) jobs"),
):
    """All jobs, newest first, with their company."""
    db = get_db()
    return await job_service.search_jobs(db, search, location, job_type, is_open)


# ===========================
# EMPLOYER ENDPOINTS
# ===========================

# ✅ 2. MY POSTED JOBS (Employer) - declared before /{job_id}
@router.get("/employer")
async def get_employer_jobs(current_user: dict = Depends(employer_required)):
    db = get_db()
    jobs = await db.jobs.find({"created_by": current_user["_id"]}).sort(job_service.NEWEST_FIRST).to_list(None)
    return {"success": True, "jobs": await job_service.populate_jobs(db, jobs)}


# ✅ 3. GET SINGLE JOB DETAILS (Public)
@router.get("/{job_id}", response_model=JobResponse)
async def get_job_by_id(job_id: str):
    db = get_db()
    job = await job_service.get_job(db, job_id)
    populated = await job_service.populate_jobs(db, [job], with_creator=True)
    return populated[0]


# ✅ 4. JOB ANALYTICS (Employer)
@router.get("/{job_id}/analytics", response_model=JobAnalyticsResponse)
async def get_job_analytics(job_id: str, current_user: dict = Depends(employer_required)):
    """Application counts per status for one of the employer's jobs."""
    db = get_db()
    return await job_service.job_analytics(db, job_id, current_user)


# ✅ 5. POST A JOB (Employer)
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_job(
    job: JobCreate,
    background_tasks: BackgroundTasks,
    current_user: dict = Depends(employer_required)
):
    """Create a job posting and alert subscribed candidates in the background."""
    db = get_db()
    created, company = await job_service.create_job(db, current_user, job)

    background_tasks.add_task(job_service.send_job_alerts, db, created, company)

    populated = await job_service.populate_jobs(db, [created])
    return {"message": "Job created successfully", "job": populated[0]}


# ✅ 6. UPDATE / REOPEN JOB (Employer)
@router.put("/{job_id}")
async def update_job(
    job_id: str,
    job_update: JobUpdate,
    current_user: dict = Depends(employer_required)
):
    """Edit a job. Sending is_open=true reopens a job closed at capacity."""
    db = get_db()
    updated = await job_service.update_job(db, job_id, current_user, job_update)
    populated = await job_service.populate_jobs(db, [updated])
    return {"message": "Job updated successfully", "job": populated[0]}


# ✅ 7. DELETE JOB (Employer)
@router.delete("/{job_id}")
async def delete_job(job_id: str, current_user: dict = Depends(employer_required)):
    """Delete an owned job together with its applications."""
    db = get_db()
    job = await job_service.get_owned_job(db, job_id, current_user)
    counts = await job_service.delete_job_cascade(db, job["_id"])
    return {"message": "Job deleted successfully", "job_id": job_id, **counts}
