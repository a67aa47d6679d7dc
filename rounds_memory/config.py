from pydantic_settings import BaseSettings
from pydantic import BaseModel, Field
from functools import lru_cache
from pathlib import Path
from dotenv import load_dotenv
import logging

logger = logging.getLogger(__name__)

# Root .env file (next to pyproject.toml)
ROOT_ENV_FILE = Path(__file__).parent.parent / ".env"

if ROOT_ENV_FILE.exists():
    load_dotenv(ROOT_ENV_FILE, override=False)
    logger.info(f"Loaded environment from: {ROOT_ENV_FILE}")


class MemoryLimits(BaseModel):
    """Capacity caps for the bounded memory collections."""
    max_sessions: int = Field(default=60, ge=1)
    max_facts: int = Field(default=100, ge=1)
    max_vital_readings: int = Field(default=60, ge=1)
    max_questions: int = Field(default=50, ge=1)
    max_concerns: int = Field(default=300, ge=1)
    max_emotional_notes: int = Field(default=50, ge=1)


class Settings(BaseSettings):
    # Application
    app_name: str = "Rounds Memory"
    debug: bool = False
    log_level: str = "INFO"

    # Snapshot storage
    database_url: str = "sqlite:///./rounds_memory.db"

    # Memory capacity
    max_sessions: int = Field(default=60, ge=1)
    max_facts: int = Field(default=100, ge=1)
    max_vital_readings: int = Field(default=60, ge=1)
    max_questions: int = Field(default=50, ge=1)
    max_concerns: int = Field(default=300, ge=1)
    max_emotional_notes: int = Field(default=50, ge=1)

    @property
    def memory_limits(self) -> MemoryLimits:
        return MemoryLimits(
            max_sessions=self.max_sessions,
            max_facts=self.max_facts,
            max_vital_readings=self.max_vital_readings,
            max_questions=self.max_questions,
            max_concerns=self.max_concerns,
            max_emotional_notes=self.max_emotional_notes,
        )

    class Config:
        env_prefix = "ROUNDS_"
        env_file = str(ROOT_ENV_FILE)
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
