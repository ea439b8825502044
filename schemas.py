"""
Request and document schemas for the finance dashboard API.

Document models map onto MongoDB collections: User -> "users",
TransactionCreate -> "data".
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class PasswordChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: Optional[str] = Field(None, alias="currentPassword")
    new_password: Optional[str] = Field(None, alias="newPassword")


class User(BaseModel):
    email: EmailStr
    name: str
    password_hash: str
    role: Literal["user", "admin"] = "user"
    avatar: Optional[str] = None
    is_active: bool = True
    last_login: Optional[datetime] = None
    email_verified: bool = False


class TransactionCreate(BaseModel):
    user_id: str = Field(..., min_length=1)
    user_name: Optional[str] = None
    amount: float = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    status: str = "Completed"
    date: Optional[datetime] = None
    user_profile: Optional[str] = None
    direction: Optional[Literal["Income", "Expense"]] = None


class ExportDateRange(BaseModel):
    start: Optional[str] = None
    end: Optional[str] = None


class ExportFilters(BaseModel):
    status: str = "all"
    category: str = "all"
    type: str = "all"
    dateRange: str = "all"


class ExportSort(BaseModel):
    field: str = "date"
    direction: str = "desc"


class ExportRequest(BaseModel):
    columns: List[str] = Field(default_factory=list)
    dateRange: ExportDateRange = Field(default_factory=ExportDateRange)
    filters: ExportFilters = Field(default_factory=ExportFilters)
    sort: ExportSort = Field(default_factory=ExportSort)
    format: str = "csv"


class DemoRequest(BaseModel):
    count: int = Field(50, ge=1, le=500)
