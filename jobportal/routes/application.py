# ========================================
# jobportal/routes/application.py
# ========================================

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse

from jobportal.database import get_db
from jobportal.schemas.application import (
    ApplicationMessage,
    ApplicationStatusUpdate,
    JobApplicationsResponse,
    MyApplicationsResponse,
)
from jobportal.services import applications as lifecycle
from jobportal.utils.auth import candidate_required, employer_required

router = APIRouter(prefix="/applications", tags=["Applications"])

# ===========================
# CANDIDATE ENDPOINTS
# ===========================

# ✅ 1. GET MY APPLICATIONS (Candidate)
@router.get("/my", response_model=MyApplicationsResponse)
async def get_my_applications(current_user: dict = Depends(candidate_required)):
    """All applications of the current candidate, newest first."""
    db = get_db()
    applications = await lifecycle.list_my_applications(db, current_user)
    return {"applications": applications}


# ✅ 2. APPLY FOR JOB (Candidate)
@router.post("/{job_id}", response_model=ApplicationMessage, status_code=status.HTTP_201_CREATED)
async def apply_for_job(job_id: str, current_user: dict = Depends(candidate_required)):
    """404 unknown job, 409 already applied, 400 job closed."""
    db = get_db()
    application = await lifecycle.apply_for_job(db, job_id, current_user)
    return {
        "message": "Job applied successfully",
        "application": lifecycle.application_view(application),
    }


# ✅ 3. WITHDRAW APPLICATION (Candidate)
@router.delete("/{application_id}")
async def withdraw_application(application_id: str, current_user: dict = Depends(candidate_required)):
    """Only the applicant can withdraw; anyone else gets 404."""
    db = get_db()
    await lifecycle.withdraw_application(db, application_id, current_user)
    return {"message": "Application withdrawn successfully"}


# ===========================
# EMPLOYER ENDPOINTS
# ===========================

# ✅ 4. APPLICATIONS FOR ONE OF MY JOBS (Employer, paginated)
@router.get("/job/{job_id}", response_model=JobApplicationsResponse)
async def get_applications_for_job(
    job_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: dict = Depends(employer_required)
):
    db = get_db()
    return await lifecycle.list_applications_for_job(db, job_id, current_user, page, limit)


# ✅ 5. ACCEPT / REJECT (Employer)
@router.patch("/{application_id}/status", response_model=ApplicationMessage)
async def update_application_status(
    application_id: str,
    status_update: ApplicationStatusUpdate,
    current_user: dict = Depends(employer_required)
):
    """Decide a pending application; closes the job when its positions fill up."""
    db = get_db()
    application = await lifecycle.update_application_status(
        db, application_id, current_user, status_update.status
    )
    return {
        "message": f"Application {application['status']}",
        "application": lifecycle.application_view(application),
    }


# ✅ 6. DOWNLOAD APPLICANT RESUME (Employer)
@router.get("/{application_id}/resume")
async def download_resume(application_id: str, current_user: dict = Depends(employer_required)):
    """Redirect the job owner to the stored resume."""
    db = get_db()
    location = await lifecycle.resume_location(db, application_id, current_user)
    return RedirectResponse(url=location, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
