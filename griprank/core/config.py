from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "GripRank Scoring"
    TIMING_PRECISION: Literal["ms2", "ms3"] = "ms3"
    FALSE_START_RULE: Literal["IFSC", "TOLERANT"] = "IFSC"
    DEFAULT_FINALIST_COUNT: int = 8
    LOG_LEVEL: str = "INFO"

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
