from abc import ABC, abstractmethod

from shared.helper.HelperConfig import HelperConfig


class StorageInterface(ABC):
    """
    Client-local durable key/value storage, the counterpart of a browser's localStorage.
    Values are plain strings.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()

    @abstractmethod
    def get(self, key: str) -> str | None:
        """
        Returns the stored value, or None if the key was never set.
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """
        Removes the key. Deleting a missing key is a no-op.
        """
        pass


def create_storage(helper_config: HelperConfig) -> StorageInterface:
    """
    Returns file backed storage if WEBUI_STORAGE_PATH is set, in-memory storage otherwise.
    """
    from shared.storage.JsonFileStorage import JsonFileStorage
    from shared.storage.MemoryStorage import MemoryStorage

    path = helper_config.get_string_val("WEBUI_STORAGE_PATH", default="")
    if path:
        return JsonFileStorage(helper_config=helper_config, path=path)
    return MemoryStorage(helper_config=helper_config)
