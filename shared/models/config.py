from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    Represents a single configuration parameter required for a env setting.

    Attributes:
        env_key (str): The raw key of the environment variable, without the client prefix (e.g. "ADDRESS" for MAIL_SMTP_ADDRESS).
        val_type (str): The expected type of the environment variable's value. Supported types are "string", "number", "bool", and "list".
        default (str | int | bool | list | None): An optional default value if the environment variable is not set. If None, the variable is required and an error will be raised if it is not set.
    """

    env_key: str
    val_type: str = "string"
    default: str | int | float | bool | list | None = None
