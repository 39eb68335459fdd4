from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".viajero" / "data"
    sqlite_filename: str = "viajero.db"
    quiz_default_questions: int = 10
    quiz_max_questions: int = 50
    quiz_min_deck: int = 4  # three distractors plus the answer
    quiz_session_idle_minutes: int = 120
    log_level: str = "info"

    model_config = {"env_prefix": "VIAJERO_"}


settings = Settings()
