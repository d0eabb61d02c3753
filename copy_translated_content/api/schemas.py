"""Pydantic v2 models for request validation."""
from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class GetElementsParams(BaseModel):
    """GET|POST /copy-translated-content/get-elements parameters."""
    page_id: int = Field(..., alias="pageId", gt=0)
    language_id: int = Field(0, alias="languageId", ge=0)

    model_config = {"populate_by_name": True, "extra": "forbid"}


class CopyParams(BaseModel):
    """POST /copy-translated-content/copy parameters."""
    source_pid: int = Field(..., alias="sourcePid", gt=0)
    target_pid: int = Field(..., alias="targetPid", gt=0)
    language_id: int = Field(0, alias="languageId", ge=0)
    target_language_uid: int | None = Field(None, alias="targetLanguageUid", ge=0)
    element_uids: list[int] = Field(default_factory=list, alias="elementUids")
    never_hide_at_copy: bool = Field(True, alias="neverHideAtCopy")

    model_config = {"populate_by_name": True, "extra": "forbid"}

    @field_validator("element_uids", mode="before")
    @classmethod
    def split_element_uids(cls, v):
        # Form and query submissions carry a comma separated string.
        if v is None or v == "":
            return []
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @field_validator("element_uids")
    @classmethod
    def positive_uids(cls, v: list[int]) -> list[int]:
        for uid in v:
            if uid <= 0:
                raise ValueError("element uids must be positive")
        return v
