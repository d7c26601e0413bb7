# ========================================
# jobportal/services/jobs.py
# ========================================
"""
Job catalog operations shared by the employer and admin routes.
"""

import asyncio
import logging
import re

from jobportal.utils import email as mailer
from jobportal.utils.errors import BadRequestError, ForbiddenError, NotFoundError
from jobportal.utils.serializers import pick, serialize_doc, to_object_id, utcnow

logger = logging.getLogger(__name__)

NEWEST_FIRST = [("created_at", -1), ("_id", -1)]


# ===========================
# READ HELPERS
# ===========================

async def populate_jobs(db, jobs, with_creator: bool = False):
    """Serialize jobs with their company (and optionally creator) summaries."""
    company_ids = list({job.get("company") for job in jobs if job.get("company")})
    companies = await db.companies.find({"_id": {"$in": company_ids}}).to_list(None)
    companies_by_id = {company["_id"]: company for company in companies}

    creators_by_id = {}
    if with_creator:
        creator_ids = list({job.get("created_by") for job in jobs if job.get("created_by")})
        creators = await db.users.find({"_id": {"$in": creator_ids}}, {"full_name": 1, "email": 1}).to_list(None)
        creators_by_id = {user["_id"]: user for user in creators}

    result = []
    for job in jobs:
        item = serialize_doc(job)
        item["applications_count"] = len(job.get("applications", []))
        company = companies_by_id.get(job.get("company"))
        if company:
            item["company"] = pick(company, "name", "description", "website", "location", "logo")
        creator = creators_by_id.get(job.get("created_by"))
        if creator:
            item["created_by"] = pick(creator, "full_name", "email")
        result.append(item)
    return result


async def search_jobs(db, search=None, location=None, job_type=None, is_open=None):
    """Public job listing, newest first."""
    query = {}

    if search:
        pattern = re.escape(search)
        query["$or"] = [
            {"title": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
        ]
    if location:
        query["location"] = {"$regex": re.escape(location), "$options": "i"}
    if job_type:
        query["job_type"] = job_type
    if is_open is not None:
        query["is_open"] = is_open

    jobs = await db.jobs.find(query).sort(NEWEST_FIRST).to_list(None)
    return await populate_jobs(db, jobs)


async def get_job(db, job_id):
    job = await db.jobs.find_one({"_id": to_object_id(job_id, "job ID")})
    if not job:
        raise NotFoundError("Job not found")
    return job


async def get_owned_job(db, job_id, employer):
    """Job lookup that also enforces created_by == employer."""
    job = await get_job(db, job_id)
    if job.get("created_by") != employer["_id"]:
        raise ForbiddenError("Not authorized")
    return job


async def job_analytics(db, job_id, employer):
    """Application counts of an owned job grouped by status."""
    job = await get_owned_job(db, job_id, employer)

    pipeline = [
        {"$match": {"job": job["_id"]}},
        {"$group": {"_id": "$status", "count": {"$sum": 1}}},
        {"$sort": {"_id": 1}},
    ]
    groups = await db.applications.aggregate(pipeline).to_list(None)
    stats = [{"status": group["_id"], "count": group["count"]} for group in groups]

    return {
        "job_id": str(job["_id"]),
        "total": sum(stat["count"] for stat in stats),
        "stats": stats,
    }


# ===========================
# WRITES
# ===========================

async def create_job(db, employer, job_in):
    """Insert a job under the employer's company. Returns (job, company)."""
    company = await db.companies.find_one({"user_id": employer["_id"]})
    if not company:
        raise ForbiddenError("Employer must create a company before posting jobs")

    now = utcnow()
    job = job_in.model_dump()
    job.update(
        {
            "is_open": True,
            "company": company["_id"],
            "created_by": employer["_id"],
            "applications": [],
            "created_at": now,
            "updated_at": now,
        }
    )
    result = await db.jobs.insert_one(job)
    job["_id"] = result.inserted_id

    logger.info("Employer %s posted job %s (%s)", employer["_id"], result.inserted_id, job["title"])
    return job, company


async def update_job(db, job_id, employer, job_update):
    job = await get_owned_job(db, job_id, employer)

    update_data = job_update.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise BadRequestError("No fields to update")

    update_data["updated_at"] = utcnow()
    await db.jobs.update_one({"_id": job["_id"]}, {"$set": update_data})

    if update_data.get("is_open") is True and not job.get("is_open", True):
        logger.info("Employer %s reopened job %s", employer["_id"], job["_id"])

    return await db.jobs.find_one({"_id": job["_id"]})


async def delete_job_cascade(db, job_oid):
    """Remove a job together with its applications and saved-job references."""
    job_result = await db.jobs.delete_one({"_id": job_oid})
    apps_result = await db.applications.delete_many({"job": job_oid})
    await db.users.update_many({"profile.saved_jobs": job_oid}, {"$pull": {"profile.saved_jobs": job_oid}})

    logger.info(
        "Deleted job %s (%d job, %d applications)", job_oid, job_result.deleted_count, apps_result.deleted_count
    )
    return {
        "jobs_deleted": job_result.deleted_count,
        "applications_deleted": apps_result.deleted_count,
    }


# ===========================
# JOB ALERTS
# ===========================

async def send_job_alerts(db, job, company):
    """
    Email every candidate who enabled job alerts about a new job.

    Runs after the response has been sent; each delivery result is logged
    and nothing is raised back.
    """
    try:
        subscribers = await db.users.find(
            {"profile.job_alerts": True, "role": "candidate"},
            {"email": 1, "full_name": 1},
        ).to_list(None)
    except Exception:
        logger.exception("Could not load job alert subscribers for job %s", job["_id"])
        return 0

    logger.info("Found %d candidates with alerts enabled for job %s", len(subscribers), job["_id"])
    if not subscribers:
        return 0

    sends = [
        mailer.send_email(
            to=sub["email"],
            subject="New Job Alert!",
            html=mailer.render_job_alert_html(
                candidate_name=sub.get("full_name", ""),
                company_name=company.get("name", ""),
                company_logo=company.get("logo"),
                title=job["title"],
                location=job["location"],
                job_type=job["job_type"],
            ),
        )
        for sub in subscribers
    ]
    results = await asyncio.gather(*sends, return_exceptions=True)

    delivered = 0
    for sub, outcome in zip(subscribers, results):
        if outcome is True:
            delivered += 1
            logger.info("Job alert sent to %s", sub["email"])
        else:
            logger.error("Job alert failed for %s: %r", sub["email"], outcome)
    return delivered
