"""
Application configuration - loads database and runtime settings from environment variables.
"""
import os
from dotenv import load_dotenv

from wellness.errors import ConfigurationError

load_dotenv()

PG_VARIABLES = ("PGHOST", "PGUSER", "PGDATABASE", "PGPASSWORD")

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
CACHE_TTL_MS = int(os.getenv("CACHE_TTL_MS", "300000"))


def build_database_url() -> str:
    """
    Build the database URL from the PG* variables.

    All of them set -> PostgreSQL, none set -> local SQLite file.
    A partial set is a deployment mistake and raises ConfigurationError.
    """
    values = {name: os.getenv(name) for name in PG_VARIABLES}
    missing = [name for name, value in values.items() if not value]

    if not missing:
        port = os.getenv("PGPORT", "5432")
        return (
            f"postgresql://{values['PGUSER']}:{values['PGPASSWORD']}"
            f"@{values['PGHOST']}:{port}/{values['PGDATABASE']}?sslmode=require"
        )
    if len(missing) == len(PG_VARIABLES):
        return "sqlite:///./data/wellness.db"

    raise ConfigurationError(
        "Incomplete PostgreSQL configuration",
        detail=f"Missing environment variables: {', '.join(missing)}",
    )


def is_production() -> bool:
    return ENVIRONMENT.lower() == "production"


DATABASE_URL = build_database_url()
