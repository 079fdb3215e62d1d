"""Document models.

This module defines the record kinds stored in MongoDB using Pydantic.
Each kind maps to one collection and declares how the record store
should treat it: which configured collection backs it and, optionally,
how its records are ranked.
"""

from typing import ClassVar, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pymongo import DESCENDING


class Record(BaseModel):
    """Base for every document the record store can hold.

    `id` is persisted as the document key `_id`. An empty `id` means the
    record has not been stored yet; the store assigns one on insert.
    """
    model_config = ConfigDict(populate_by_name=True)

    collection_key: ClassVar[str] = ""
    # (field, direction) used by `RecordStore.fetch_top_ranked`; None means unranked
    ranking: ClassVar[Optional[Tuple[str, int]]] = None
    ranking_limit: ClassVar[Optional[int]] = None

    id: str = Field(default="", alias="_id")

    def to_document(self) -> dict:
        """Serialize to the document shape stored in MongoDB."""
        return self.model_dump(by_alias=True)


class User(Record):
    """A registered account.

    Fields:
    - `username`: login name, unique by convention of the registration flow
    - `password_hash`: hashed password string (never store plaintext)
    - `created_courses` / `enrolled_courses`: ordered course identifiers
    """
    collection_key: ClassVar[str] = "users"

    username: str = ""
    password_hash: str = ""
    email: Optional[str] = None
    role: str = "User"
    profile_color: Optional[str] = None
    allow_access_to_age_restricted_content: bool = False
    use_data_to_improve_ishariu: bool = False
    created_courses: List[str] = Field(default_factory=list)
    enrolled_courses: List[str] = Field(default_factory=list)


class Course(Record):
    """A course in the catalog; ranked by the revenue it generated."""
    collection_key: ClassVar[str] = "courses"
    ranking: ClassVar[Optional[Tuple[str, int]]] = ("revenue_generated", DESCENDING)
    ranking_limit: ClassVar[Optional[int]] = 3

    title: str = ""
    description: Optional[str] = None
    category: Optional[str] = None
    creator_id: Optional[str] = None
    price: float = 0.0
    revenue_generated: float = 0.0
    enrolled_count: int = 0


# closed set of kinds a RecordStore accepts
RECORD_KINDS = (User, Course)
