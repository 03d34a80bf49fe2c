"""Configuration for the ingestion boundary and CLI."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration, read from the environment (or a .env file)."""

    # Ingestion
    INGEST_API_KEY: str = os.getenv("COACHSCORE_INGEST_API_KEY", "")
    INGEST_KEYS_FILE: str = os.getenv("COACHSCORE_INGEST_KEYS_FILE", "")

    # Storage
    STORE_PATH: Path = Path(
        os.getenv(
            "COACHSCORE_STORE_PATH",
            str(Path.home() / ".coachscore" / "daily_metrics.jsonl"),
        )
    )

    # Scoring
    BASELINE_WINDOW_DAYS: int = int(os.getenv("COACHSCORE_BASELINE_WINDOW_DAYS", "30"))

    # Application
    LOG_LEVEL: str = os.getenv("COACHSCORE_LOG_LEVEL", "INFO")
    HOST: str = os.getenv("COACHSCORE_HOST", "127.0.0.1")
    PORT: int = int(os.getenv("COACHSCORE_PORT", "8000"))


config = Config()
