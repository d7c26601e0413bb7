# ========================================
# jobportal/services/moderation.py
# ========================================
"""
Admin moderation over users, jobs and companies, with an audit trail.
"""

import asyncio
import logging
import math

from jobportal.services.jobs import delete_job_cascade
from jobportal.utils.errors import ForbiddenError, NotFoundError
from jobportal.utils.serializers import to_object_id, utcnow

logger = logging.getLogger(__name__)


# ===========================
# AUDIT
# ===========================

async def log_admin_action(db, admin, action: str, target_type: str, target_id=None, details: dict = None):
    """Record an admin action in audit_logs."""
    entry = {
        "action": action,
        "admin_id": admin["_id"],
        "admin_name": admin.get("full_name"),
        "target_type": target_type,
        "target_id": str(target_id) if target_id is not None else None,
        "details": details or {},
        "timestamp": utcnow(),
    }
    await db.audit_logs.insert_one(entry)
    logger.info("Admin %s: %s %s %s", admin["_id"], action, target_type, entry["target_id"])
    return entry


async def list_audit_logs(db, limit: int = 100):
    return await db.audit_logs.find().sort([("timestamp", -1), ("_id", -1)]).limit(limit).to_list(limit)


# ===========================
# STATS / LISTINGS
# ===========================

async def platform_stats(db):
    (
        total_users,
        total_jobs,
        total_applications,
        total_companies,
        candidates,
        employers,
    ) = await asyncio.gather(
        db.users.count_documents({}),
        db.jobs.count_documents({}),
        db.applications.count_documents({}),
        db.companies.count_documents({}),
        db.users.count_documents({"role": "candidate"}),
        db.users.count_documents({"role": "employer"}),
    )
    return {
        "total_users": total_users,
        "total_jobs": total_jobs,
        "total_applications": total_applications,
        "total_companies": total_companies,
        "candidates": candidates,
        "employers": employers,
    }


async def list_users(db, page: int = 1, limit: int = 10):
    skip = (page - 1) * limit
    users, total = await asyncio.gather(
        db.users.find({}, {"password": 0}).sort([("created_at", -1), ("_id", -1)]).skip(skip).limit(limit).to_list(limit),
        db.users.count_documents({}),
    )
    return users, {"total": total, "page": page, "pages": math.ceil(total / limit)}


# ===========================
# USERS
# ===========================

async def _get_non_admin_user(db, user_id, verb: str):
    user = await db.users.find_one({"_id": to_object_id(user_id, "user ID")})
    if not user:
        raise NotFoundError("User not found")
    if user.get("role") == "admin":
        raise ForbiddenError(f"Cannot {verb} admin")
    return user


async def delete_user(db, user_id, admin):
    """Delete a non-admin account."""
    user = await _get_non_admin_user(db, user_id, "delete")

    await db.users.delete_one({"_id": user["_id"]})
    await log_admin_action(
        db, admin, "user_deleted", "user", user["_id"], {"email": user.get("email"), "role": user.get("role")}
    )
    return user


async def toggle_block_user(db, user_id, admin):
    """Flip is_blocked on a non-admin account. Returns the new value."""
    user = await _get_non_admin_user(db, user_id, "block")

    is_blocked = not user.get("is_blocked", False)
    await db.users.update_one(
        {"_id": user["_id"]},
        {"$set": {"is_blocked": is_blocked, "updated_at": utcnow()}},
    )
    await log_admin_action(
        db, admin, "user_blocked" if is_blocked else "user_unblocked", "user", user["_id"], {"email": user.get("email")}
    )
    return is_blocked


# ===========================
# JOBS / COMPANIES
# ===========================

async def delete_job(db, job_id, admin):
    job_oid = to_object_id(job_id, "job ID")
    job = await db.jobs.find_one({"_id": job_oid}, {"title": 1})
    if not job:
        raise NotFoundError("Job not found")

    counts = await delete_job_cascade(db, job_oid)
    await log_admin_action(db, admin, "job_deleted", "job", job_oid, {"title": job.get("title"), **counts})
    return counts


async def delete_company(db, company_id, admin):
    """
    Remove a company, unlink its owner, and delete its jobs along with
    their applications.
    """
    company_oid = to_object_id(company_id, "company ID")
    company = await db.companies.find_one({"_id": company_oid})
    if not company:
        raise NotFoundError("Company not found")

    await db.companies.delete_one({"_id": company_oid})
    users_result = await db.users.update_many(
        {"company": company_oid},
        {"$set": {"company": None, "updated_at": utcnow()}},
    )

    jobs = await db.jobs.find({"company": company_oid}, {"_id": 1}).to_list(None)
    jobs_deleted = 0
    applications_deleted = 0
    for job in jobs:
        counts = await delete_job_cascade(db, job["_id"])
        jobs_deleted += counts["jobs_deleted"]
        applications_deleted += counts["applications_deleted"]

    details = {
        "name": company.get("name"),
        "users_unlinked": users_result.modified_count,
        "jobs_deleted": jobs_deleted,
        "applications_deleted": applications_deleted,
    }
    await log_admin_action(db, admin, "company_deleted", "company", company_oid, details)
    return details
