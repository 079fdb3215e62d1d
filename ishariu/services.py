"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate record stores.
Services are intentionally thin: they perform validation, merge incoming
fields onto fetched records and persist them via the stores. They never
hand a caller-built document straight to `replace`.
"""

from datetime import datetime, timedelta, timezone
import re
from typing import List, Optional

import jwt
from passlib.context import CryptContext

from . import models
from .config import settings
from .repositories import RecordStore

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
JWT_SECRET = settings.JWT_SECRET
JWT_ALGORITHM = settings.JWT_ALGORITHM
JWT_EXPIRE_HOURS = settings.JWT_EXPIRE_HOURS

BOOLEAN_SETTINGS = ("allow_access_to_age_restricted_content", "use_data_to_improve_ishariu")


def ensure_owner(current_user_id: str, target_id: str):
    """Raise PermissionError unless the caller is acting on their own record."""
    if current_user_id != target_id:
        raise PermissionError(f"user {current_user_id} may not modify {target_id}")


class AccountService:
    """Registration, sign-in and profile maintenance for users."""
    def __init__(self, users: RecordStore, courses: RecordStore):
        self.users = users
        self.courses = courses

    def find_by_username(self, username: str) -> Optional[models.User]:
        found = self.users.fetch_by_filter({"username": username})
        return found[0] if found else None

    def register(self, username: str, password: str, email: Optional[str] = None) -> Optional[models.User]:
        """Create a new user with a hashed password.

        Returns `None` if the username is already taken.
        """
        if self.find_by_username(username):
            return None
        user = models.User(username=username, password_hash=PWD_CTX.hash(password), email=email)
        self.users.insert(user)
        return user

    def authenticate(self, username: str, password: str) -> Optional[str]:
        """Verify credentials and return a signed JWT token on success.

        Returns `None` if authentication fails.
        """
        user = self.find_by_username(username)
        if not user or not self.verify_password(user, password):
            return None
        expire = datetime.now(timezone.utc) + timedelta(hours=JWT_EXPIRE_HOURS)
        payload = {"user_id": user.id, "role": user.role, "exp": int(expire.timestamp())}
        return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)

    @staticmethod
    def verify_password(user: models.User, password: str) -> bool:
        if not user.password_hash or not password:
            return False
        return PWD_CTX.verify(password, user.password_hash)

    def get_profile(self, user_id: str) -> Optional[dict]:
        """Return the user with their created and enrolled courses resolved.

        Course ids that no longer resolve are skipped.
        """
        user = self.users.fetch_by_id(user_id)
        if user is None:
            return None
        return {
            "user": user,
            "created_courses": self._resolve_courses(user.created_courses),
            "enrolled_courses": self._resolve_courses(user.enrolled_courses),
        }

    def _resolve_courses(self, course_ids: List[str]) -> List[models.Course]:
        out = []
        for course_id in course_ids:
            course = self.courses.fetch_by_id(course_id)
            if course is not None:
                out.append(course)
        return out

    def update_profile(self, current_user_id: str, target_id: str, changes: dict) -> Optional[models.User]:
        """Merge non-empty profile fields from `changes` onto the stored user.

        Empty strings and `None` leave the stored value alone; boolean
        preferences are always copied. Raises PermissionError when the caller
        targets another user's record and ValueError when the new username
        belongs to someone else. Returns `None` when the user does not exist.
        """
        ensure_owner(current_user_id, target_id)
        user = self.users.fetch_by_id(target_id)
        if user is None:
            return None
        new_username = changes.get("username")
        if new_username and new_username != user.username:
            taken = self.find_by_username(new_username)
            if taken is not None and taken.id != user.id:
                raise ValueError(f"username {new_username!r} already taken")
        for field in ("email", "username", "profile_color"):
            value = changes.get(field)
            if value:
                setattr(user, field, value)
        if changes.get("password"):
            user.password_hash = PWD_CTX.hash(changes["password"])
        for field in BOOLEAN_SETTINGS:
            if field in changes:
                setattr(user, field, bool(changes[field]))
        self.users.replace(user)
        return user

    def change_password(self, user_id: str, current_password: str, new_password: str) -> Optional[dict]:
        """Swap the password after checking the current one.

        Returns `None` if the user is missing, otherwise a result dict with
        `success` and, on failure, a `message`.
        """
        user = self.users.fetch_by_id(user_id)
        if user is None:
            return None
        if not self.verify_password(user, current_password):
            return {"success": False, "message": "Current password is incorrect."}
        if new_password == current_password:
            return {"success": False, "message": "New password cannot be the same as the current password."}
        user.password_hash = PWD_CTX.hash(new_password)
        self.users.replace(user)
        return {"success": True}

    def update_setting(self, user_id: str, name: str, value: bool) -> Optional[models.User]:
        """Set one boolean preference; unknown names raise ValueError."""
        if name not in BOOLEAN_SETTINGS:
            raise ValueError(f"unknown setting {name!r}")
        user = self.users.fetch_by_id(user_id)
        if user is None:
            return None
        setattr(user, name, bool(value))
        self.users.replace(user)
        return user

    def delete_account(self, user_id: str, password: str) -> Optional[dict]:
        user = self.users.fetch_by_id(user_id)
        if user is None:
            return None
        if not self.verify_password(user, password):
            return {"success": False, "message": "Incorrect password."}
        self.users.delete_by_id(user.id)
        return {"success": True}


class CourseService:
    """Catalog browsing, course creation and enrolment."""
    def __init__(self, courses: RecordStore, users: RecordStore):
        self.courses = courses
        self.users = users

    def list_courses(self) -> List[models.Course]:
        return self.courses.fetch_all()

    def get_course(self, course_id: str) -> Optional[models.Course]:
        return self.courses.fetch_by_id(course_id)

    def best_sellers(self) -> List[models.Course]:
        """Top courses by revenue generated."""
        return self.courses.fetch_top_ranked()

    def search(self, title: Optional[str] = None, category: Optional[str] = None) -> List[models.Course]:
        """Case-insensitive search on title and/or category (at most 10 hits)."""
        query = {}
        if title:
            query["title"] = {"$regex": re.escape(title), "$options": "i"}
        if category:
            query["category"] = {"$regex": f"^{re.escape(category)}$", "$options": "i"}
        return self.courses.fetch_by_filter(query)

    def create_course(self, creator_id: str, payload: dict) -> Optional[models.Course]:
        """Insert a course and record it on its creator's profile.

        Returns `None` if the creator does not exist.
        """
        creator = self.users.fetch_by_id(creator_id)
        if creator is None:
            return None
        course = models.Course(**payload, creator_id=creator_id)
        self.courses.insert(course)
        creator.created_courses.append(course.id)
        self.users.replace(creator)
        return course

    def enroll(self, user_id: str, course_id: str) -> Optional[models.Course]:
        """Enrol a user once; each new enrolment counts the price as revenue.

        Returns `None` if either the user or the course is missing.
        """
        user = self.users.fetch_by_id(user_id)
        course = self.courses.fetch_by_id(course_id)
        if user is None or course is None:
            return None
        if course_id in user.enrolled_courses:
            return course
        user.enrolled_courses.append(course_id)
        course.enrolled_count += 1
        course.revenue_generated += course.price
        self.users.replace(user)
        self.courses.replace(course)
        return course
