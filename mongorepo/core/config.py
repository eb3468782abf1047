import os
from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv(".env.local")

DEFAULT_MONGO_URI = "mongodb://localhost:27017"
DEFAULT_DB_NAME = "mongorepo"


class MongoSettings(BaseModel):
    """Connection settings shared by the blocking and asyncio repositories."""

    connection_string: str = Field(..., min_length=1)
    database_name: str = Field(..., min_length=1)
    server_selection_timeout_ms: int = Field(default=5000, gt=0)
    verify_connection: bool = True

    @classmethod
    def from_env(cls) -> "MongoSettings":
        """
        Build settings from MONGO_URI, DB_NAME, MONGO_SERVER_SELECTION_TIMEOUT_MS
        and MONGO_VERIFY_CONNECTION (values from .env.local are already loaded).
        """
        return cls(
            connection_string=os.getenv("MONGO_URI", DEFAULT_MONGO_URI),
            database_name=os.getenv("DB_NAME", DEFAULT_DB_NAME),
            server_selection_timeout_ms=int(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "5000")),
            verify_connection=os.getenv("MONGO_VERIFY_CONNECTION", "true").lower() in ("1", "true", "yes"),
        )

    def sanitized_uri(self) -> str:
        """Connection string with the password masked, for logging."""
        url = self.connection_string
        if "://" not in url or "@" not in url:
            return url
        protocol, rest = url.split("://", 1)
        credentials, host = rest.rsplit("@", 1)
        if ":" in credentials:
            username = credentials.split(":", 1)[0]
            return f"{protocol}://{username}:***@{host}"
        return url
