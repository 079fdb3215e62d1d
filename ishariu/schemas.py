"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and provide validation for
controller handlers and tests. Password hashes never leave the service
layer: responses use `UserOut`.
"""

from pydantic import BaseModel, Field
from typing import List, Optional


class RegisterIn(BaseModel):
    """Payload for user registration."""
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    email: Optional[str] = None


class SignInIn(BaseModel):
    """Payload for sign-in."""
    username: str
    password: str


class TokenOut(BaseModel):
    """Authentication response containing an access token."""
    access_token: str


class UserOut(BaseModel):
    """Public view of a user record."""
    id: str
    username: str
    email: Optional[str] = None
    role: str
    profile_color: Optional[str] = None
    allow_access_to_age_restricted_content: bool
    use_data_to_improve_ishariu: bool
    created_courses: List[str]
    enrolled_courses: List[str]


class CourseOut(BaseModel):
    """Public view of a course record."""
    id: str
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    creator_id: Optional[str] = None
    price: float
    revenue_generated: float
    enrolled_count: int


class ProfileOut(BaseModel):
    """A user together with their resolved courses."""
    user: UserOut
    created_courses: List[CourseOut]
    enrolled_courses: List[CourseOut]


class ProfileUpdateIn(BaseModel):
    """Fields a user may change on their own profile; empty ones are ignored."""
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    profile_color: Optional[str] = None
    allow_access_to_age_restricted_content: bool = False
    use_data_to_improve_ishariu: bool = False


class ChangePasswordIn(BaseModel):
    current_password: str
    new_password: str = Field(min_length=1)


class UpdateSettingIn(BaseModel):
    setting_name: str
    setting_value: bool


class DeleteAccountIn(BaseModel):
    password: str


class ResultOut(BaseModel):
    """Structured success/failure indicator returned by account actions."""
    success: bool
    message: Optional[str] = None


class CourseIn(BaseModel):
    """Request format for creating a course."""
    title: str = Field(min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    price: float = Field(default=0.0, ge=0)
