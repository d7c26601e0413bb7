# ========================================
# jobportal/routes/user.py
# ========================================

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from jobportal.database import get_db
from jobportal.schemas.user import UserRegister, UserLogin, UserProfileUpdate, UserResponse, TokenResponse
from jobportal.services import users as user_service
from jobportal.utils.auth import get_current_user, candidate_required, token_for_user
from jobportal.utils.storage import store_upload, RESUME_TYPES, IMAGE_TYPES

router = APIRouter(prefix="/users", tags=["Users"])

# ===========================
# PUBLIC ENDPOINTS
# ===========================

# ✅ 1. REGISTER
@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_user(user: UserRegister):
    """Register a new candidate or employer account."""
    db = get_db()
    created = await user_service.register_user(db, user)
    return {
        "message": "User created successfully",
        "user": UserResponse(**user_service.user_view(created)),
    }


# ✅ 2. LOGIN
@router.post("/login", response_model=TokenResponse)
async def login(user_credentials: UserLogin):
    """Login and get a JWT access token."""
    db = get_db()

    user = await user_service.authenticate(db, user_credentials.email, user_credentials.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return {
        "access_token": token_for_user(user),
        "token_type": "bearer",
        "user": user_service.user_view(user),
    }


# ===========================
# AUTHENTICATED USER ENDPOINTS
# ===========================

# ✅ 3. GET MY PROFILE
@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: dict = Depends(get_current_user)):
    return user_service.user_view(current_user)


# ✅ 4. UPDATE MY PROFILE
@router.put("/profile/update")
async def update_profile(
    profile_data: UserProfileUpdate,
    current_user: dict = Depends(get_current_user)
):
    """Update name, phone, bio and skills of the current user."""
    db = get_db()
    user = await user_service.update_profile(db, current_user, profile_data)
    return {
        "message": "Profile updated successfully",
        "user": UserResponse(**user_service.user_view(user)),
    }


# ✅ 5. PROFILE PHOTO
@router.post("/profile/photo")
async def update_profile_photo(
    profile_photo: UploadFile = File(...),
    current_user: dict = Depends(get_current_user)
):
    db = get_db()
    reference = await store_upload(profile_photo, "profile_photo", str(current_user["_id"]), IMAGE_TYPES)
    user = await user_service.set_profile_photo(db, current_user, reference)
    return {
        "message": "Photo updated successfully",
        "photo_url": reference,
        "user": UserResponse(**user_service.user_view(user)),
    }


# ===========================
# CANDIDATE ENDPOINTS
# ===========================

# ✅ 6. UPLOAD RESUME
@router.post("/upload-resume")
async def upload_resume(
    resume: UploadFile = File(...),
    current_user: dict = Depends(candidate_required)
):
    """Store a resume (PDF/DOC) and attach it to the candidate profile."""
    db = get_db()
    reference = await store_upload(resume, "resume", str(current_user["_id"]), RESUME_TYPES)
    await user_service.set_resume(db, current_user, reference, resume.filename)
    return {"message": "Resume uploaded successfully", "resume": reference}


# ✅ 7. SAVE / UNSAVE JOB
@router.post("/save-job/{job_id}")
async def toggle_save_job(job_id: str, current_user: dict = Depends(candidate_required)):
    db = get_db()
    saved, saved_jobs = await user_service.toggle_saved_job(db, current_user, job_id)
    return {
        "message": "Saved to wishlist" if saved else "Removed from wishlist",
        "saved_jobs": saved_jobs,
    }


# ✅ 8. LIST SAVED JOBS
@router.get("/saved-jobs")
async def get_saved_jobs(current_user: dict = Depends(candidate_required)):
    db = get_db()
    return await user_service.get_saved_jobs(db, current_user)


# ✅ 9. TOGGLE JOB ALERTS
@router.post("/toggle-alerts")
async def toggle_job_alerts(current_user: dict = Depends(candidate_required)):
    db = get_db()
    enabled = await user_service.toggle_job_alerts(db, current_user)
    return {"message": "Alerts updated", "job_alerts": enabled}
