from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    Represents a single environment setting a client requires, e.g. the gateway base URL.

    Attributes:
        env_key (str): The raw key, prefixed by the client with "<TYPE>_<ENGINE>_" before lookup (e.g. "BASE_URL").
        val_type (str): The expected value type. Supported types are "string", "number", "bool", and "list".
        default (str | int | float | bool | list | None): Fallback value. If None, the setting is required.
    """

    env_key: str
    val_type: str = "string"
    default: str | int | float | bool | list | None = None
