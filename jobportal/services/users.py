# ========================================
# jobportal/services/users.py
# ========================================

import logging

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from jobportal.services.jobs import populate_jobs
from jobportal.utils.errors import ConflictError, ForbiddenError, NotFoundError
from jobportal.utils.security import get_password_hash, verify_password
from jobportal.utils.serializers import serialize_doc, to_object_id, utcnow

logger = logging.getLogger(__name__)


def new_profile():
    return {
        "bio": None,
        "skills": [],
        "resume": None,
        "resume_original_name": None,
        "profile_photo": "",
        "saved_jobs": [],
        "job_alerts": False,
    }


def user_view(user):
    """Public shape of a user document (password never included)."""
    view = serialize_doc(user)
    view.setdefault("company", None)
    view.setdefault("is_blocked", False)
    view["profile"] = {**serialize_doc(new_profile()), **(view.get("profile") or {})}
    return view


async def register_user(db, user_in):
    """Create an account with a hashed password."""
    existing_user = await db.users.find_one({"email": user_in.email})
    if existing_user:
        raise ConflictError("User already exists with this email")

    now = utcnow()
    user = {
        "full_name": user_in.full_name,
        "email": user_in.email,
        "phone_number": user_in.phone_number,
        "password": get_password_hash(user_in.password),
        "role": user_in.role,
        "is_blocked": False,
        "company": None,
        "profile": new_profile(),
        "created_at": now,
        "updated_at": now,
    }
    try:
        result = await db.users.insert_one(user)
    except DuplicateKeyError:
        raise ConflictError("User already exists with this email")
    user["_id"] = result.inserted_id

    logger.info("Registered %s account %s", user["role"], result.inserted_id)
    return user


async def authenticate(db, email: str, password: str):
    """Returns the user for valid credentials, None otherwise."""
    user = await db.users.find_one({"email": email})
    if not user or not verify_password(password, user["password"]):
        return None

    if user.get("is_blocked"):
        raise ForbiddenError("Your account has been blocked by admin.")
    return user


async def _set_fields(db, user_id, fields: dict):
    fields["updated_at"] = utcnow()
    user = await db.users.find_one_and_update(
        {"_id": user_id},
        {"$set": fields},
        projection={"password": 0},
        return_document=ReturnDocument.AFTER,
    )
    if user is None:
        raise NotFoundError("User not found")
    return user


async def update_profile(db, current_user, profile_data):
    data = profile_data.model_dump(exclude_unset=True, exclude_none=True)

    fields = {}
    for key in ("full_name", "phone_number"):
        if data.get(key):
            fields[key] = data[key]
    if data.get("bio"):
        fields["profile.bio"] = data["bio"]
    if "skills" in data:
        fields["profile.skills"] = data["skills"]

    return await _set_fields(db, current_user["_id"], fields)


async def set_resume(db, current_user, reference: str, original_name: str):
    return await _set_fields(
        db,
        current_user["_id"],
        {"profile.resume": reference, "profile.resume_original_name": original_name},
    )


async def set_profile_photo(db, current_user, reference: str):
    return await _set_fields(db, current_user["_id"], {"profile.profile_photo": reference})


# ===========================
# SAVED JOBS / ALERTS
# ===========================

async def toggle_saved_job(db, current_user, job_id):
    """Save the job if absent, unsave it if present. Returns (saved, saved_jobs)."""
    job_oid = to_object_id(job_id, "job ID")

    user = await db.users.find_one({"_id": current_user["_id"]}, {"profile.saved_jobs": 1})
    saved_jobs = ((user or {}).get("profile") or {}).get("saved_jobs", [])

    if job_oid in saved_jobs:
        update = {"$pull": {"profile.saved_jobs": job_oid}}
        saved = False
    else:
        if not await db.jobs.find_one({"_id": job_oid}, {"_id": 1}):
            raise NotFoundError("Job not found")
        # $addToSet keeps the list free of duplicates under concurrent saves
        update = {"$addToSet": {"profile.saved_jobs": job_oid}}
        saved = True

    user = await db.users.find_one_and_update(
        {"_id": current_user["_id"]},
        update,
        projection={"profile.saved_jobs": 1},
        return_document=ReturnDocument.AFTER,
    )
    return saved, [str(job) for job in user["profile"]["saved_jobs"]]


async def get_saved_jobs(db, current_user):
    """Saved jobs in saved order; ids of deleted jobs are skipped."""
    user = await db.users.find_one({"_id": current_user["_id"]}, {"profile.saved_jobs": 1})
    saved_ids = ((user or {}).get("profile") or {}).get("saved_jobs", [])
    if not saved_ids:
        return []

    jobs = await db.jobs.find({"_id": {"$in": saved_ids}}).to_list(None)
    jobs_by_id = {job["_id"]: job for job in jobs}
    ordered = [jobs_by_id[job_id] for job_id in saved_ids if job_id in jobs_by_id]
    return await populate_jobs(db, ordered)


async def toggle_job_alerts(db, current_user):
    user = await db.users.find_one({"_id": current_user["_id"]}, {"profile.job_alerts": 1})
    enabled = not ((user or {}).get("profile") or {}).get("job_alerts", False)
    await _set_fields(db, current_user["_id"], {"profile.job_alerts": enabled})
    return enabled
