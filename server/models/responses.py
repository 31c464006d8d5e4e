from pydantic import BaseModel


class CrossrefResponse(BaseModel):
    profile: str
    report: str
    entries: int
    keys: int
    failed_keys: list[str]
    extraction_errors: int
    tagged_items: int
    tagging_errors: int
