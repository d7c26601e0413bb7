# ========================================
# jobportal/routes/company.py
# ========================================

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from typing import Optional

from jobportal.database import get_db
from jobportal.schemas.company import CompanyResponse
from jobportal.services import companies as company_service
from jobportal.services.users import user_view
from jobportal.utils.auth import employer_required
from jobportal.utils.serializers import serialize_doc
from jobportal.utils.storage import store_upload, IMAGE_TYPES

router = APIRouter(prefix="/companies", tags=["Companies"])


# ✅ 1. GET MY COMPANY (Employer)
@router.get("/me")
async def get_my_company(current_user: dict = Depends(employer_required)):
    """The employer's company, or null when none is registered yet."""
    db = get_db()
    company = await company_service.get_company_for(db, current_user)
    if not company:
        return {"company": None}
    return {"success": True, "company": CompanyResponse(**serialize_doc(company))}


# ✅ 2. REGISTER COMPANY (Employer)
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_company(
    name: str = Form(..., min_length=1),
    description: Optional[str] = Form(None),
    website: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    current_user: dict = Depends(employer_required)
):
    """Register the employer's company (one per employer)."""
    db = get_db()

    logo_ref = ""
    if logo is not None and logo.filename:
        logo_ref = await store_upload(logo, "logo", str(current_user["_id"]), IMAGE_TYPES)

    company, user = await company_service.create_company(
        db,
        current_user,
        {"name": name, "description": description, "website": website, "location": location},
        logo_ref,
    )
    return {
        "message": "Company registered successfully",
        "company": CompanyResponse(**serialize_doc(company)),
        "user": user_view(user),
    }


# ✅ 3. UPDATE COMPANY (Employer)
@router.put("/update")
async def update_company(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    website: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    current_user: dict = Depends(employer_required)
):
    db = get_db()

    logo_ref = None
    if logo is not None and logo.filename:
        logo_ref = await store_upload(logo, "logo", str(current_user["_id"]), IMAGE_TYPES)

    company = await company_service.update_company(
        db,
        current_user,
        {"name": name, "description": description, "website": website, "location": location},
        logo_ref,
    )
    return {
        "success": True,
        "message": "Company updated successfully",
        "company": CompanyResponse(**serialize_doc(company)),
    }
