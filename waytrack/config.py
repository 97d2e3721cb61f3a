import os
from pathlib import Path
from dotenv import load_dotenv
from typing import Optional

# Load .env robustly (try project root and CWD)
_ROOT = Path(__file__).resolve().parent.parent
_candidates = [
    _ROOT / ".env",
    Path.cwd() / ".env",
]
for p in _candidates:
    if p.exists():
        load_dotenv(p, override=False)

class Settings:
    # Database
    DATABASE_URL: str = os.getenv("WAYTRACK_DATABASE_URL", "sqlite:///./waytrack.db")

    # File Storage
    UPLOAD_DIR: str = os.getenv("WAYTRACK_UPLOAD_DIR", "./uploads/waytrack")

    # Master key, resolves to the persistent system user
    API_KEY: Optional[str] = os.getenv("WAYTRACK_API_KEY", "change-me")

    # Upload limits
    MAX_GPX_SIZE: int = int(os.getenv("WAYTRACK_MAX_GPX_SIZE", str(20 * 1024 * 1024)))  # 20MB
    MAX_PHOTO_SIZE: int = int(os.getenv("WAYTRACK_MAX_PHOTO_SIZE", str(25 * 1024 * 1024)))  # 25MB

    # Track simplification: tracks up to this many points are stored as uploaded
    SIMPLIFY_MIN_POINTS: int = int(os.getenv("WAYTRACK_SIMPLIFY_MIN_POINTS", "100"))

    # Photo positioning
    TIME_MATCH_WINDOW_MINUTES: int = int(os.getenv("WAYTRACK_TIME_MATCH_WINDOW_MINUTES", "30"))

settings = Settings()
