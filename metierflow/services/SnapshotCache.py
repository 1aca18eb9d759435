# Last successfully loaded snapshot, kept on disk for when the store is unreachable
import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from metierflow.core.config import settings
from metierflow.schemas.entitySchemas import AppData

logger = logging.getLogger(__name__)


class SnapshotCache:
    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.SNAPSHOT_CACHE_PATH)

    def read(self) -> Optional[AppData]:
        """The cached snapshot, or None when the file is missing or unreadable."""
        if not self.path.exists():
            return None
        try:
            return AppData.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            logger.warning(f"⚠️ Ignoring unreadable snapshot cache {self.path}: {str(e)}")
            return None

    def write(self, data: AppData) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = data.model_dump(mode="json", by_alias=True)
            self.path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            logger.error(f"❌ Failed to write snapshot cache {self.path}: {str(e)}")
