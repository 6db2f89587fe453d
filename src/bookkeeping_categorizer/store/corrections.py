import json
import os
import threading

from pydantic import ValidationError

from bookkeeping_categorizer.errors import StorageUnavailableError
from bookkeeping_categorizer.logger import get_logger
from bookkeeping_categorizer.models import Correction

logger = get_logger(__name__)


class CorrectionLog:
    """Append-only JSON-lines record of user corrections.

    Nothing on the categorization path reads this file; it exists for offline
    analysis of where the rule tables disagree with bookkeepers.
    """

    def __init__(self, data_path: str = "corrections.jsonl"):
        self.data_path = data_path
        self._lock = threading.Lock()

    def append(self, correction: Correction) -> None:
        line = correction.model_dump_json()
        try:
            with self._lock, open(self.data_path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            raise StorageUnavailableError(
                f"Could not append to correction log: {e}", path=self.data_path
            ) from e

    def read(self) -> list[Correction]:
        if not os.path.exists(self.data_path):
            return []
        corrections: list[Correction] = []
        try:
            with open(self.data_path, "r", encoding="utf-8") as f:
                for line_no, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        corrections.append(Correction.model_validate_json(line))
                    except ValidationError:
                        logger.warning("[LEARN] Skipping malformed correction on line %d", line_no)
        except OSError as e:
            raise StorageUnavailableError(
                f"Could not read correction log: {e}", path=self.data_path
            ) from e
        return corrections

    def clear(self) -> None:
        with self._lock:
            if os.path.exists(self.data_path):
                os.remove(self.data_path)
