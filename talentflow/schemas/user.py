from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import date, datetime
from talentflow.models.user import UserRole


class ProfileSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    email: str
    role: UserRole
    department: Optional[str] = None


class ProfileResponse(ProfileSummary):
    phone: Optional[str] = None
    manager_id: Optional[str] = None
    coach_id: Optional[str] = None
    career_pathway_id: Optional[str] = None
    career_level_id: Optional[str] = None
    birth_date: Optional[date] = None
    hire_date: Optional[date] = None
    job_description: Optional[str] = None
    country: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class EmployeeUpdate(BaseModel):
    """Admin-side profile update (direction / admin)."""
    full_name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    department: Optional[str] = None
    role: Optional[UserRole] = None
    manager_id: Optional[str] = None
    coach_id: Optional[str] = None
    career_pathway_id: Optional[str] = None
    career_level_id: Optional[str] = None
    birth_date: Optional[date] = None
    hire_date: Optional[date] = None
    job_description: Optional[str] = None
    country: Optional[str] = None
    is_active: Optional[bool] = None


class ProfileCompletion(BaseModel):
    """What an employee may fill in on their own profile."""
    full_name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    birth_date: Optional[date] = None
    job_description: Optional[str] = None
    country: Optional[str] = None


class CreatedUser(BaseModel):
    id: str
    email: str


class CreateUserResponse(BaseModel):
    success: bool
    user: CreatedUser
    message: str
    request_id: Optional[str] = None
