from shared.helper.HelperConfig import HelperConfig
from shared.storage.StorageInterface import StorageInterface


class MemoryStorage(StorageInterface):
    """Process-local storage. Survives nothing, used when no storage path is configured."""

    def __init__(self, helper_config: HelperConfig, initial: dict[str, str] | None = None):
        super().__init__(helper_config=helper_config)
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)
