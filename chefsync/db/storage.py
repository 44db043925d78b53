"""Profile persistence: the whole profile list as one serialized blob."""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from chefsync.errors import StorageCorruption
from chefsync.models.user import UserProfile
from chefsync.analytics import log_error

logger = logging.getLogger(__name__)


class ProfileStorage(ABC):
    """Load-all / save-all store for every UserProfile of one installation."""

    @abstractmethod
    def read_blob(self) -> Optional[str]:
        """Return the stored blob, or None when nothing was saved yet."""
        pass

    @abstractmethod
    def write_blob(self, blob: str) -> None:
        """Replace the stored blob."""
        pass

    def load_all(self) -> List[UserProfile]:
        """Parse every stored profile.

        An unreadable blob reads as no profiles. A single profile that fails
        validation is dropped and the rest are kept.
        """
        source = type(self).__name__
        try:
            blob = self.read_blob()
            if blob is None or not blob.strip():
                return []
            data = json.loads(blob)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            log_error(StorageCorruption(f"Corrupted storage: {e}"), source)
            return []
        if not isinstance(data, list):
            log_error(StorageCorruption(f"Corrupted storage: expected a list, got {type(data).__name__}"), source)
            return []

        users = []
        for index, entry in enumerate(data):
            try:
                users.append(UserProfile.model_validate(entry))
            except PydanticValidationError as e:
                log_error(StorageCorruption(f"Dropping stored profile {index}: {e}"), source)
        return users

    def save_all(self, users: Sequence[UserProfile]) -> None:
        data = [user.model_dump(by_alias=True, mode="json") for user in users]
        self.write_blob(json.dumps(data, ensure_ascii=False))


class MemoryStorage(ProfileStorage):
    """Keeps the blob in process memory."""

    def __init__(self, blob: Optional[str] = None):
        self.blob = blob
        self.writes = 0

    def read_blob(self) -> Optional[str]:
        return self.blob

    def write_blob(self, blob: str) -> None:
        self.blob = blob
        self.writes += 1


class JsonFileStorage(ProfileStorage):
    """Keeps the blob in a JSON file, replaced atomically on every write."""

    def __init__(self, path: str):
        self.path = Path(path)

    def read_blob(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def write_blob(self, blob: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(blob)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise
