from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PLANCORE_", env_file=".env", extra="ignore")

    app_name: str = "PlanCore"
    debug: bool = False

    # Scheduler
    workday_start_hour: int = Field(9, ge=0, le=23)
    workday_end_hour: int = Field(17, ge=1, le=24)
    task_buffer_minutes: int = Field(15, ge=0)
    default_task_duration_minutes: int = Field(30, gt=0)
    default_task_priority: int = Field(3, ge=1, le=3)

    # Budget optimizer
    max_dp_cells: int = Field(50_000_000, gt=0, description="Upper bound on (items + 1) * (budget cents + 1)")
    ortools_time_limit_seconds: int = Field(10, gt=0)

    @model_validator(mode="after")
    def check_workday(self):
        if self.workday_start_hour >= self.workday_end_hour:
            raise ValueError("workday_start_hour must be before workday_end_hour")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
