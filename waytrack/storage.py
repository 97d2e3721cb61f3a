import aiofiles
import uuid
from datetime import datetime
from pathlib import Path

from .config import settings

class StorageService:
    """Writes uploaded GPX files and photos below the upload directory."""

    def __init__(self, upload_dir: str = None):
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)

    def _generate_filename(self, original_filename: str, owner_id: str) -> str:
        """Generate unique filename"""
        timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S")
        file_uuid = str(uuid.uuid4())[:8]
        extension = Path(original_filename).suffix.lower()
        return f"{owner_id}_{timestamp}_{file_uuid}{extension}"

    async def save(self, data: bytes, original_filename: str, owner_id: str, subdir: str) -> str:
        """Persist ``data`` and return its path relative to the upload dir."""
        target_dir = self.upload_dir / subdir
        target_dir.mkdir(parents=True, exist_ok=True)

        relative_path = f"{subdir}/{self._generate_filename(original_filename, owner_id)}"
        async with aiofiles.open(self.upload_dir / relative_path, "wb") as f:
            await f.write(data)
        return relative_path
