import json
from pathlib import Path

from shared.helper.HelperConfig import HelperConfig
from shared.storage.StorageInterface import StorageInterface


class JsonFileStorage(StorageInterface):
    """
    Storage backed by a single JSON object on disk.

    The file is read once on construction and rewritten on every change, so a
    value set by one process run is visible to the next one.
    """

    def __init__(self, helper_config: HelperConfig, path: str | Path):
        super().__init__(helper_config=helper_config)
        self._path = Path(path)
        self._values: dict[str, str] = self._load()

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self._save()

    def delete(self, key: str) -> None:
        if self._values.pop(key, None) is not None:
            self._save()

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError:
            self.logging.warning("Storage file %s is not valid JSON, starting empty.", self._path)
            return {}
        if not isinstance(data, dict):
            self.logging.warning("Storage file %s does not hold a JSON object, starting empty.", self._path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._values, f, indent=2)
        tmp_path.replace(self._path)
