# ========================================
# jobportal/services/applications.py
# ========================================
"""
Application lifecycle: apply, decide, withdraw, list and the resume gate.

Every function takes the database handle and the authenticated user
document explicitly. Domain failures are raised as the errors in
jobportal.utils.errors; the routes only translate HTTP in and out.

Status moves once, pending -> accepted | rejected. Accepting the
application that fills the job's last position closes the job.
"""

import asyncio
import logging
import math

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from jobportal.utils import email as mailer
from jobportal.utils.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from jobportal.utils.serializers import pick, serialize_doc, to_object_id, utcnow

logger = logging.getLogger(__name__)

PENDING = "pending"
ACCEPTED = "accepted"
REJECTED = "rejected"
DECISIONS = (ACCEPTED, REJECTED)

NEWEST_FIRST = [("created_at", -1), ("_id", -1)]


# ===========================
# VIEWS
# ===========================

def application_view(application, job=None, applicant=None):
    """Serialize an application, embedding populated references when given."""
    view = serialize_doc(application)
    if job is not None:
        view["job"] = job
    if applicant is not None:
        view["applicant"] = applicant
    return view


def job_summary(job, company=None):
    summary = pick(job, "title", "location", "job_type", "salary", "position", "is_open")
    if company is not None:
        summary["company"] = pick(company, "name", "location", "logo")
    else:
        summary["company"] = str(job["company"]) if job.get("company") else None
    return summary


def applicant_summary(user):
    summary = pick(user, "full_name", "email")
    summary["profile"] = serialize_doc(user.get("profile") or {})
    return summary


def is_job_owner(job, user) -> bool:
    return job is not None and job.get("created_by") == user["_id"]


# ===========================
# CANDIDATE OPERATIONS
# ===========================

async def apply_for_job(db, job_id, candidate):
    """Create a pending application for (job, candidate)."""
    job_oid = to_object_id(job_id, "job ID")

    job = await db.jobs.find_one({"_id": job_oid})
    if not job:
        raise NotFoundError("Job not found")

    already_applied = await db.applications.find_one({"job": job_oid, "applicant": candidate["_id"]})
    if already_applied:
        raise ConflictError("You have already applied for this job")

    # Checked before the insert so a closed job never gets an application row
    if not job.get("is_open", True):
        raise BadRequestError("This job is no longer accepting applications")

    now = utcnow()
    application = {
        "job": job_oid,
        "applicant": candidate["_id"],
        "status": PENDING,
        "created_at": now,
        "updated_at": now,
    }
    try:
        result = await db.applications.insert_one(application)
    except DuplicateKeyError:
        # lost a race against a concurrent apply for the same pair
        raise ConflictError("You have already applied for this job")
    application["_id"] = result.inserted_id

    await db.jobs.update_one(
        {"_id": job_oid},
        {"$push": {"applications": result.inserted_id}, "$set": {"updated_at": now}},
    )

    logger.info("Candidate %s applied to job %s (application %s)", candidate["_id"], job_oid, result.inserted_id)
    return application


async def withdraw_application(db, application_id, candidate):
    """Delete the candidate's own application, whatever its status."""
    app_oid = to_object_id(application_id, "application ID")

    # Ownership is part of the lookup: someone else's application is simply not found
    application = await db.applications.find_one({"_id": app_oid, "applicant": candidate["_id"]})
    if not application:
        raise NotFoundError("Application not found")

    await db.jobs.update_one({"_id": application["job"]}, {"$pull": {"applications": app_oid}})
    await db.applications.delete_one({"_id": app_oid})

    logger.info("Candidate %s withdrew application %s", candidate["_id"], app_oid)
    return application


async def list_my_applications(db, candidate):
    """Candidate's applications, newest first, with job and company populated."""
    applications = await db.applications.find({"applicant": candidate["_id"]}).sort(NEWEST_FIRST).to_list(None)
    if not applications:
        return []

    job_ids = list({app["job"] for app in applications})
    jobs = await db.jobs.find({"_id": {"$in": job_ids}}).to_list(None)
    jobs_by_id = {job["_id"]: job for job in jobs}

    company_ids = list({job.get("company") for job in jobs if job.get("company")})
    companies = await db.companies.find({"_id": {"$in": company_ids}}).to_list(None)
    companies_by_id = {company["_id"]: company for company in companies}

    result = []
    for app in applications:
        job = jobs_by_id.get(app["job"])
        if job is None:
            # Job removed underneath the application
            continue
        result.append(application_view(app, job=job_summary(job, companies_by_id.get(job.get("company")))))
    return result


# ===========================
# EMPLOYER OPERATIONS
# ===========================

async def list_applications_for_job(db, job_id, employer, page: int = 1, limit: int = 10):
    """Paginated applications of a job owned by the employer, newest first."""
    job_oid = to_object_id(job_id, "job ID")

    job = await db.jobs.find_one({"_id": job_oid})
    if not job:
        raise NotFoundError("Job not found")
    if not is_job_owner(job, employer):
        raise ForbiddenError("Not authorized")

    skip = (page - 1) * limit
    applications, total = await asyncio.gather(
        db.applications.find({"job": job_oid}).sort(NEWEST_FIRST).skip(skip).limit(limit).to_list(limit),
        db.applications.count_documents({"job": job_oid}),
    )

    applicant_ids = list({app["applicant"] for app in applications})
    applicants = await db.users.find({"_id": {"$in": applicant_ids}}, {"password": 0}).to_list(None)
    applicants_by_id = {user["_id"]: user for user in applicants}

    items = []
    for app in applications:
        applicant = applicants_by_id.get(app["applicant"])
        items.append(application_view(app, applicant=applicant_summary(applicant) if applicant else None))

    return {
        "applications": items,
        "pagination": {
            "total": total,
            "page": page,
            "pages": math.ceil(total / limit),
        },
    }


async def update_application_status(db, application_id, employer, new_status):
    """
    Accept or reject a pending application of one of the employer's jobs.

    When accepting, the job is closed (and persisted) before the status
    write if this acceptance fills its last position. The status write is
    conditional on the application still being pending. The applicant is
    emailed afterwards; delivery problems never fail the call.
    """
    if new_status not in DECISIONS:
        raise BadRequestError("Invalid status")

    app_oid = to_object_id(application_id, "application ID")

    application = await db.applications.find_one({"_id": app_oid})
    if not application:
        raise NotFoundError("Application not found")

    if application["status"] != PENDING:
        raise BadRequestError(f"Application already {application['status']} and cannot be changed")

    job = await db.jobs.find_one({"_id": application["job"]})
    if not is_job_owner(job, employer):
        raise ForbiddenError("Not authorized")

    now = utcnow()

    if new_status == ACCEPTED:
        accepted_count = await db.applications.count_documents({"job": job["_id"], "status": ACCEPTED})
        if accepted_count + 1 >= job["position"]:
            await db.jobs.update_one({"_id": job["_id"]}, {"$set": {"is_open": False, "updated_at": now}})
            job["is_open"] = False
            logger.info(
                "Job %s closed: %d of %d positions filled", job["_id"], accepted_count + 1, job["position"]
            )

    updated = await db.applications.find_one_and_update(
        {"_id": app_oid, "status": PENDING},
        {"$set": {"status": new_status, "updated_at": now}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        current = await db.applications.find_one({"_id": app_oid})
        if current is None:
            raise NotFoundError("Application not found")
        raise BadRequestError(f"Application already {current['status']} and cannot be changed")

    logger.info("Employer %s marked application %s as %s", employer["_id"], app_oid, new_status)

    await notify_applicant(db, updated, job)
    return updated


async def notify_applicant(db, application, job) -> bool:
    """Email the applicant about a decision. Never raises."""
    status = application["status"]
    try:
        applicant = await db.users.find_one({"_id": application["applicant"]}, {"email": 1, "full_name": 1})
        if not applicant or not applicant.get("email"):
            logger.warning("No email on file for applicant of application %s", application["_id"])
            return False

        sent = await mailer.send_email(
            to=applicant["email"],
            subject=f"Application {status}",
            text=f"Your application for {job.get('title')} was {status}.",
        )
    except Exception:
        # The decision is already committed; delivery is best effort
        logger.exception("Email failed to send, but status was updated (application %s)", application["_id"])
        return False

    if not sent:
        logger.warning("Decision email for application %s was not delivered", application["_id"])
    return sent


async def resume_location(db, application_id, employer) -> str:
    """Stored resume reference of the applicant, for the job's owner only."""
    app_oid = to_object_id(application_id, "application ID")

    application = await db.applications.find_one({"_id": app_oid})
    if not application:
        raise NotFoundError("Application not found")

    job = await db.jobs.find_one({"_id": application["job"]})
    if not is_job_owner(job, employer):
        raise ForbiddenError("Not authorized")

    applicant = await db.users.find_one({"_id": application["applicant"]}, {"profile.resume": 1})
    resume = ((applicant or {}).get("profile") or {}).get("resume")
    if not resume:
        raise NotFoundError("Resume not found")

    return resume
