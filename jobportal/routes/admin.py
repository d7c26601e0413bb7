# ========================================
# jobportal/routes/admin.py
# ========================================

from fastapi import APIRouter, Depends, Query, status
from typing import List

from jobportal.database import get_db
from jobportal.schemas.admin import AdminStatsResponse, AuditLogResponse, UserListResponse
from jobportal.schemas.user import UserCreate, UserResponse
from jobportal.services import moderation
from jobportal.services.jobs import populate_jobs
from jobportal.services.users import register_user, user_view
from jobportal.utils.auth import admin_required
from jobportal.utils.serializers import pick, serialize_doc

router = APIRouter(prefix="/admin", tags=["Admin"])


# ===========================
# STATS
# ===========================

# ✅ 1. PLATFORM STATS
@router.get("/stats", response_model=AdminStatsResponse)
async def get_admin_stats(current_user: dict = Depends(admin_required)):
    db = get_db()
    return {"success": True, "stats": await moderation.platform_stats(db)}


# ===========================
# USER MANAGEMENT
# ===========================

# ✅ 2. CREATE USER
@router.post("/users/create", status_code=status.HTTP_201_CREATED)
async def create_user(user: UserCreate, current_user: dict = Depends(admin_required)):
    """Create any kind of account on someone's behalf."""
    db = get_db()
    created = await register_user(db, user)
    await moderation.log_admin_action(
        db, current_user, "user_created", "user", created["_id"], {"email": created["email"], "role": created["role"]}
    )
    return {"message": "User created successfully", "user": UserResponse(**user_view(created))}


# ✅ 3. LIST USERS (paginated)
@router.get("/users", response_model=UserListResponse)
async def get_all_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: dict = Depends(admin_required)
):
    db = get_db()
    users, pagination = await moderation.list_users(db, page, limit)
    return {"users": [user_view(user) for user in users], "pagination": pagination}


# ✅ 4. DELETE USER
@router.delete("/users/{user_id}")
async def delete_user(user_id: str, current_user: dict = Depends(admin_required)):
    """Admin accounts cannot be deleted."""
    db = get_db()
    await moderation.delete_user(db, user_id, current_user)
    return {"message": "User deleted successfully"}


# ✅ 5. BLOCK / UNBLOCK USER
@router.patch("/users/{user_id}/block")
async def toggle_block_user(user_id: str, current_user: dict = Depends(admin_required)):
    db = get_db()
    is_blocked = await moderation.toggle_block_user(db, user_id, current_user)
    return {"message": f"User {'blocked' if is_blocked else 'unblocked'}", "is_blocked": is_blocked}


# ===========================
# JOB MODERATION
# ===========================

# ✅ 6. LIST ALL JOBS
@router.get("/jobs")
async def get_all_jobs_admin(current_user: dict = Depends(admin_required)):
    db = get_db()
    jobs = await db.jobs.find().sort([("created_at", -1), ("_id", -1)]).to_list(None)
    return {"success": True, "jobs": await populate_jobs(db, jobs, with_creator=True)}


# ✅ 7. DELETE JOB (cascades to its applications)
@router.delete("/jobs/{job_id}")
async def delete_job_admin(job_id: str, current_user: dict = Depends(admin_required)):
    db = get_db()
    counts = await moderation.delete_job(db, job_id, current_user)
    return {"message": "Job removed by admin", **counts}


# ===========================
# COMPANY MODERATION
# ===========================

# ✅ 8. LIST ALL COMPANIES
@router.get("/companies")
async def get_all_companies_admin(current_user: dict = Depends(admin_required)):
    db = get_db()
    companies = await db.companies.find().sort([("created_at", -1), ("_id", -1)]).to_list(None)

    owner_ids = list({company["user_id"] for company in companies if company.get("user_id")})
    owners = await db.users.find({"_id": {"$in": owner_ids}}, {"full_name": 1, "email": 1}).to_list(None)
    owners_by_id = {owner["_id"]: owner for owner in owners}

    result = []
    for company in companies:
        item = serialize_doc(company)
        owner = owners_by_id.get(company.get("user_id"))
        if owner:
            item["user_id"] = pick(owner, "full_name", "email")
        result.append(item)

    return {"success": True, "companies": result}


# ✅ 9. DELETE COMPANY (cascades to jobs and their applications)
@router.delete("/companies/{company_id}")
async def delete_company_admin(company_id: str, current_user: dict = Depends(admin_required)):
    db = get_db()
    details = await moderation.delete_company(db, company_id, current_user)
    return {"message": "Company and its jobs removed", **details}


# ===========================
# AUDIT LOGS
# ===========================

# ✅ 10. RECENT ADMIN ACTIONS
@router.get("/audit-logs", response_model=List[AuditLogResponse])
async def get_audit_logs(
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(admin_required)
):
    db = get_db()
    logs = await moderation.list_audit_logs(db, limit)
    return [serialize_doc(entry) for entry in logs]
