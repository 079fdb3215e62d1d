"""Application settings and validation."""

import os


class Settings:
    ENV: str
    JWT_SECRET: str
    JWT_ALGORITHM: str
    JWT_EXPIRE_HOURS: int
    ALLOW_INSECURE_JWT: bool
    ALLOW_DEV_CORS: bool
    MONGO_URL: str
    MONGO_DB_NAME: str
    MONGO_USERS_COLLECTION: str
    MONGO_COURSES_COLLECTION: str
    MONGO_TIMEOUT_MS: int

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.JWT_SECRET = os.getenv("JWT_SECRET", "change_me_for_prod")
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))
        self.ALLOW_INSECURE_JWT = os.getenv("ALLOW_INSECURE_JWT", "false").lower() == "true"
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
        self.MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "ishariu")
        self.MONGO_USERS_COLLECTION = os.getenv("MONGO_USERS_COLLECTION", "Users")
        self.MONGO_COURSES_COLLECTION = os.getenv("MONGO_COURSES_COLLECTION", "Courses")
        self.MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))
        self._validate()

    def _validate(self):
        if self.ENV != "dev" and not self.ALLOW_INSECURE_JWT and self.JWT_SECRET == "change_me_for_prod":
            raise RuntimeError("JWT_SECRET must be set to a non-default value in non-dev environments")
        if self.MONGO_USERS_COLLECTION == self.MONGO_COURSES_COLLECTION:
            raise RuntimeError("users and courses must be stored in different collections")

    def collection_name(self, key: str) -> str:
        """Map a record kind's `collection_key` to its configured collection name."""
        names = {
            "users": self.MONGO_USERS_COLLECTION,
            "courses": self.MONGO_COURSES_COLLECTION,
        }
        try:
            return names[key]
        except KeyError:
            raise ValueError(f"no collection configured for {key!r}") from None

    def collection_names(self) -> tuple:
        """All collections the application expects to exist."""
        return (self.MONGO_USERS_COLLECTION, self.MONGO_COURSES_COLLECTION)


settings = Settings()
