from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    Represents a single configuration parameter required for a env setting.

    Attributes:
        env_key (str): The key/name of the environment variable to read.
        val_type (str): The expected type of the environment variable's value. Supported types are "string", "number", "bool", and "list".
        default (str | int | bool | list | None): An optional default value if the environment variable is not set. If None, the variable is required and an error will be raised if it is not set.
    """

    env_key: str
    val_type: str
    default: str | int | bool | list | None = None


class SearchProfile(BaseModel):
    """
    One named search target (e.g. an Obsidian vault) with its endpoint and credential.

    Attributes:
        name (str): Profile name as configured. Also sent to the search service and written into tags.
        base_url (str): Base URL of the search service for this profile.
        token (str): Bearer token for the search service. Empty if the service is unauthenticated.
    """

    name: str
    base_url: str
    token: str = ""
