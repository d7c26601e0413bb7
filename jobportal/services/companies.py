"""
Company registry: one company per employer.
"""

import logging

from pymongo import ReturnDocument

from jobportal.utils.errors import ConflictError, NotFoundError
from jobportal.utils.serializers import utcnow

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "description", "website", "location")


async def get_company_for(db, employer):
    return await db.companies.find_one({"user_id": employer["_id"]})


async def create_company(db, employer, fields: dict, logo: str = ""):
    """Register the employer's company and link it on the user."""
    if await get_company_for(db, employer):
        raise ConflictError("Company already registered for this employer")

    now = utcnow()
    company = {
        "name": fields["name"],
        "description": fields.get("description"),
        "website": fields.get("website"),
        "location": fields.get("location"),
        "logo": logo or "",
        "user_id": employer["_id"],
        "created_at": now,
        "updated_at": now,
    }
    result = await db.companies.insert_one(company)
    company["_id"] = result.inserted_id

    user = await db.users.find_one_and_update(
        {"_id": employer["_id"]},
        {"$set": {"company": result.inserted_id, "updated_at": now}},
        projection={"password": 0},
        return_document=ReturnDocument.AFTER,
    )

    logger.info("Employer %s registered company %s", employer["_id"], result.inserted_id)
    return company, user


async def update_company(db, employer, fields: dict, logo: str = None):
    """Only non-empty fields are written."""
    company = await get_company_for(db, employer)
    if not company:
        raise NotFoundError("Company not found. Please register it first.")

    update_data = {key: fields[key] for key in EDITABLE_FIELDS if fields.get(key)}
    if logo:
        update_data["logo"] = logo
    update_data["updated_at"] = utcnow()

    return await db.companies.find_one_and_update(
        {"_id": company["_id"]},
        {"$set": update_data},
        return_document=ReturnDocument.AFTER,
    )
