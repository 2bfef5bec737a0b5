from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / "TalentSearch"
    # Candidates older than this never appear in search results.
    recency_window_days: int = 730  # two years
    # Upper bound on how long a profile edit can stay invisible to text search.
    index_refresh_interval_seconds: float = 2.0
    index_refresh_batch_size: int = 500
    default_page_size: int = 20
    max_page_size: int = 100
    featured_sample_size: int = 6
    api_prefix: str = "/api/v1"

    @property
    def db_path(self) -> Path:
        return self.data_dir / "talent.sqlite"

    model_config = {"env_prefix": "TALENT_"}


settings = Settings()
