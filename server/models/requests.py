from pydantic import BaseModel


class CrossrefRequest(BaseModel):
    item_ids: list[str]
    profile: str | None = None
    apply_tags: bool = True
