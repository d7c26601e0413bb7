from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, List, Literal, Union
from datetime import datetime

PHONE_PATTERN = r"^\+?[1-9]\d{7,14}$"

Role = Literal["candidate", "employer", "admin"]
SelfServiceRole = Literal["candidate", "employer"]


def split_skills(value):
    """Skills arrive as a list or as a comma-separated string."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(",")
    skills = []
    for skill in value:
        skill = skill.strip()
        if skill and skill not in skills:
            skills.append(skill)
    return skills


# 1. Account creation by an admin (any role)
class UserCreate(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    phone_number: str = Field(..., pattern=PHONE_PATTERN)
    password: str = Field(..., min_length=6)
    role: Role


# 1b. Public self-registration: admins are only created from /admin/users/create
class UserRegister(UserCreate):
    role: SelfServiceRole


# 2. For Login (Input)
class UserLogin(BaseModel):
    email: EmailStr
    password: str


# 3. Embedded profile
class Profile(BaseModel):
    bio: Optional[str] = None
    skills: List[str] = []
    resume: Optional[str] = None
    resume_original_name: Optional[str] = None
    profile_photo: str = ""
    saved_jobs: List[str] = []
    job_alerts: bool = False


# 4. For Responses (Output)
class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    email: EmailStr
    phone_number: Optional[str] = None
    role: str
    is_blocked: bool = False
    company: Optional[str] = None
    profile: Profile = Profile()
    created_at: Optional[datetime] = None


class TokenResponse(BaseModel):
    message: str = "Login successful"
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


# 5. For Updating Profile (Input)
class UserProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    bio: Optional[str] = None
    skills: Optional[Union[List[str], str]] = None

    @field_validator("skills")
    @classmethod
    def normalize_skills(cls, value):
        return split_skills(value)
