"""Result of resolving identifier keys against a search backend."""

from pydantic import BaseModel


class ResolutionResult(BaseModel):
    """
    Matched document names per key.

    Attributes:
        matches (dict[str, list[str]]): Document names per queried key, in the order the backend returned them.
            Every queried key is present; keys whose query failed map to an empty list.
        failed_keys (list[str]): Keys whose query failed, in query order.
    """
    matches: dict[str, list[str]] = {}
    failed_keys: list[str] = []
