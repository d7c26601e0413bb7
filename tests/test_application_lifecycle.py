"""
Service-level tests for the application lifecycle and job capacity rules.
"""

import pytest
from bson import ObjectId

from jobportal.services import applications as lifecycle
from jobportal.utils.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError


@pytest.fixture
async def employer(make_user):
    return await make_user("employer")


@pytest.fixture
async def candidate(make_user):
    return await make_user("candidate")


# ===========================
# APPLY
# ===========================

async def test_apply_creates_pending_application_and_back_reference(db, employer, candidate, make_job):
    job = await make_job(employer)

    application = await lifecycle.apply_for_job(db, job["_id"], candidate)

    assert application["status"] == "pending"
    stored = await db.applications.find_one({"_id": application["_id"]})
    assert stored["job"] == job["_id"]
    assert stored["applicant"] == candidate["_id"]
    job_after = await db.jobs.find_one({"_id": job["_id"]})
    assert job_after["applications"] == [application["_id"]]


async def test_apply_to_missing_job_creates_nothing(db, candidate):
    with pytest.raises(NotFoundError):
        await lifecycle.apply_for_job(db, ObjectId(), candidate)

    assert await db.applications.count_documents({}) == 0


async def test_apply_twice_is_a_conflict(db, employer, candidate, make_job):
    job = await make_job(employer)
    await lifecycle.apply_for_job(db, job["_id"], candidate)

    with pytest.raises(ConflictError):
        await lifecycle.apply_for_job(db, job["_id"], candidate)

    assert await db.applications.count_documents({"job": job["_id"]}) == 1


async def test_apply_to_closed_job_is_rejected_without_a_record(db, employer, candidate, make_job):
    job = await make_job(employer)
    await db.jobs.update_one({"_id": job["_id"]}, {"$set": {"is_open": False}})

    with pytest.raises(BadRequestError) as exc:
        await lifecycle.apply_for_job(db, job["_id"], candidate)

    assert exc.value.detail == "This job is no longer accepting applications"
    assert await db.applications.count_documents({}) == 0
    job_after = await db.jobs.find_one({"_id": job["_id"]})
    assert job_after["applications"] == []


async def test_apply_with_malformed_job_id(db, candidate):
    with pytest.raises(BadRequestError):
        await lifecycle.apply_for_job(db, "not-an-id", candidate)


# ===========================
# ACCEPT / REJECT
# ===========================

async def test_invalid_status_value(db, employer, candidate, make_job):
    job = await make_job(employer)
    application = await lifecycle.apply_for_job(db, job["_id"], candidate)

    with pytest.raises(BadRequestError):
        await lifecycle.update_application_status(db, application["_id"], employer, "shortlisted")

    with pytest.raises(BadRequestError):
        await lifecycle.update_application_status(db, application["_id"], employer, "pending")


async def test_missing_application(db, employer):
    with pytest.raises(NotFoundError):
        await lifecycle.update_application_status(db, ObjectId(), employer, "accepted")


async def test_accepting_last_position_closes_job(db, employer, candidate, make_job):
    job = await make_job(employer, position=1)
    application = await lifecycle.apply_for_job(db, job["_id"], candidate)

    updated = await lifecycle.update_application_status(db, application["_id"], employer, "accepted")

    assert updated["status"] == "accepted"
    job_after = await db.jobs.find_one({"_id": job["_id"]})
    assert job_after["is_open"] is False


async def test_job_stays_open_until_capacity_is_reached(db, employer, make_user, make_job):
    job = await make_job(employer, position=2)
    first = await lifecycle.apply_for_job(db, job["_id"], await make_user("candidate"))
    second = await lifecycle.apply_for_job(db, job["_id"], await make_user("candidate"))

    await lifecycle.update_application_status(db, first["_id"], employer, "accepted")
    assert (await db.jobs.find_one({"_id": job["_id"]}))["is_open"] is True

    await lifecycle.update_application_status(db, second["_id"], employer, "accepted")
    assert (await db.jobs.find_one({"_id": job["_id"]}))["is_open"] is False


async def test_rejection_never_closes_job(db, employer, candidate, make_job):
    job = await make_job(employer, position=1)
    application = await lifecycle.apply_for_job(db, job["_id"], candidate)

    await lifecycle.update_application_status(db, application["_id"], employer, "rejected")

    assert (await db.jobs.find_one({"_id": job["_id"]}))["is_open"] is True


async def test_accepting_beyond_capacity_closes_reopened_job(db, employer, make_user, make_job):
    job = await make_job(employer, position=1)
    first = await lifecycle.apply_for_job(db, job["_id"], await make_user("candidate"))
    second = await lifecycle.apply_for_job(db, job["_id"], await make_user("candidate"))
    await lifecycle.update_application_status(db, first["_id"], employer, "accepted")

    # manual reopen by the employer; accepted count (1) is already >= position (1)
    await db.jobs.update_one({"_id": job["_id"]}, {"$set": {"is_open": True}})
    await lifecycle.update_application_status(db, second["_id"], employer, "accepted")

    assert (await db.jobs.find_one({"_id": job["_id"]}))["is_open"] is False
    assert await db.applications.count_documents({"job": job["_id"], "status": "accepted"}) == 2


@pytest.mark.parametrize("first, second", [("accepted", "rejected"), ("rejected", "accepted"), ("accepted", "accepted")])
async def test_decided_application_is_immutable(db, employer, candidate, make_job, first, second):
    job = await make_job(employer, position=5)
    application = await lifecycle.apply_for_job(db, job["_id"], candidate)
    await lifecycle.update_application_status(db, application["_id"], employer, first)

    with pytest.raises(BadRequestError) as exc:
        await lifecycle.update_application_status(db, application["_id"], employer, second)

    assert first in exc.value.detail
    assert (await db.applications.find_one({"_id": application["_id"]}))["status"] == first


async def test_other_employer_cannot_decide(db, employer, candidate, make_user, make_job):
    job = await make_job(employer)
    application = await lifecycle.apply_for_job(db, job["_id"], candidate)
    intruder = await make_user("employer")

    with pytest.raises(ForbiddenError):
        await lifecycle.update_application_status(db, application["_id"], intruder, "accepted")

    assert (await db.applications.find_one({"_id": application["_id"]}))["status"] == "pending"
    assert (await db.jobs.find_one({"_id": job["_id"]}))["is_open"] is True


async def test_decision_emails_applicant(db, employer, candidate, make_job, outbox):
    job = await make_job(employer, title="Data Engineer")
    application = await lifecycle.apply_for_job(db, job["_id"], candidate)

    await lifecycle.update_application_status(db, application["_id"], employer, "rejected")

    assert outbox.messages == [
        {
            "to": candidate["email"],
            "subject": "Application rejected",
            "text": "Your application for Data Engineer was rejected.",
            "html": None,
        }
    ]


async def test_email_failure_does_not_undo_decision(db, employer, candidate, make_job, outbox):
    job = await make_job(employer)
    application = await lifecycle.apply_for_job(db, job["_id"], candidate)
    outbox.fail = True

    updated = await lifecycle.update_application_status(db, application["_id"], employer, "accepted")

    assert updated["status"] == "accepted"
    assert (await db.applications.find_one({"_id": application["_id"]}))["status"] == "accepted"


async def test_no_email_on_apply(db, employer, candidate, make_job, outbox):
    job = await make_job(employer)
    await lifecycle.apply_for_job(db, job["_id"], candidate)
    assert outbox.messages == []


# ===========================
# WITHDRAW
# ===========================

async def test_withdraw_removes_record_and_back_reference(db, employer, candidate, make_job):
    job = await make_job(employer)
    application = await lifecycle.apply_for_job(db, job["_id"], candidate)

    await lifecycle.withdraw_application(db, application["_id"], candidate)

    assert await db.applications.find_one({"_id": application["_id"]}) is None
    assert (await db.jobs.find_one({"_id": job["_id"]}))["applications"] == []


async def test_reapply_after_withdraw(db, employer, candidate, make_job):
    job = await make_job(employer)
    first = await lifecycle.apply_for_job(db, job["_id"], candidate)
    await lifecycle.withdraw_application(db, first["_id"], candidate)

    second = await lifecycle.apply_for_job(db, job["_id"], candidate)

    assert second["_id"] != first["_id"]
    assert (await db.jobs.find_one({"_id": job["_id"]}))["applications"] == [second["_id"]]


async def test_cannot_withdraw_someone_elses_application(db, employer, candidate, make_user, make_job):
    job = await make_job(employer)
    application = await lifecycle.apply_for_job(db, job["_id"], candidate)
    other = await make_user("candidate")

    with pytest.raises(NotFoundError):
        await lifecycle.withdraw_application(db, application["_id"], other)

    assert await db.applications.find_one({"_id": application["_id"]}) is not None


async def test_decided_application_can_be_withdrawn(db, employer, candidate, make_job):
    job = await make_job(employer, position=3)
    application = await lifecycle.apply_for_job(db, job["_id"], candidate)
    await lifecycle.update_application_status(db, application["_id"], employer, "accepted")

    await lifecycle.withdraw_application(db, application["_id"], candidate)

    assert await db.applications.count_documents({}) == 0


# ===========================
# LISTINGS
# ===========================

async def test_my_applications_newest_first_and_skip_dangling(db, employer, candidate, make_job):
    older = await make_job(employer, title="Older")
    newer = await make_job(employer, title="Newer")
    gone = await make_job(employer, title="Gone")
    await lifecycle.apply_for_job(db, older["_id"], candidate)
    await lifecycle.apply_for_job(db, newer["_id"], candidate)
    await lifecycle.apply_for_job(db, gone["_id"], candidate)
    await db.jobs.delete_one({"_id": gone["_id"]})

    applications = await lifecycle.list_my_applications(db, candidate)

    assert [app["job"]["title"] for app in applications] == ["Newer", "Older"]
    assert applications[0]["job"]["company"]["name"] == "Acme Corp"
    assert applications[0]["applicant"] == str(candidate["_id"])


async def test_job_applications_are_paginated(db, employer, make_user, make_job):
    job = await make_job(employer, position=20)
    for _ in range(12):
        await lifecycle.apply_for_job(db, job["_id"], await make_user("candidate"))

    result = await lifecycle.list_applications_for_job(db, job["_id"], employer, page=3, limit=5)

    assert result["pagination"] == {"total": 12, "page": 3, "pages": 3}
    assert len(result["applications"]) == 2
    applicant = result["applications"][0]["applicant"]
    assert set(applicant) == {"id", "full_name", "email", "profile"}


async def test_job_applications_ownership(db, employer, make_user, make_job):
    job = await make_job(employer)
    intruder = await make_user("employer")

    with pytest.raises(ForbiddenError):
        await lifecycle.list_applications_for_job(db, job["_id"], intruder)

    with pytest.raises(NotFoundError):
        await lifecycle.list_applications_for_job(db, ObjectId(), employer)


# ===========================
# RESUME GATE
# ===========================

async def test_resume_location(db, employer, candidate, make_user, make_job):
    job = await make_job(employer)
    application = await lifecycle.apply_for_job(db, job["_id"], candidate)

    with pytest.raises(NotFoundError) as exc:
        await lifecycle.resume_location(db, application["_id"], employer)
    assert exc.value.detail == "Resume not found"

    await db.users.update_one({"_id": candidate["_id"]}, {"$set": {"profile.resume": "/files/abc123"}})
    assert await lifecycle.resume_location(db, application["_id"], employer) == "/files/abc123"

    with pytest.raises(ForbiddenError):
        await lifecycle.resume_location(db, application["_id"], await make_user("employer"))

    with pytest.raises(NotFoundError):
        await lifecycle.resume_location(db, ObjectId(), employer)
