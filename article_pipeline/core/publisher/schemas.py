"""Wire schemas for the article store API.

The store is a separate service; these models describe only the fields this
pipeline sends and reads.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer

TITLE_MAX_LENGTH = 255


class ArticleVersion(str, Enum):
    ORIGINAL = "original"
    REWRITTEN = "rewritten"


class ArticleCreateRequest(BaseModel):
    """Payload for POST /api/articles."""

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH, description="Article title")
    content: str = Field(..., min_length=1, description="Article body text")
    source_url: Optional[str] = Field(None, description="Unique URL the article was acquired from")
    version: ArticleVersion = Field(..., description="original or rewritten")
    parent_article_id: Optional[Union[int, str]] = Field(None, description="Source article of a rewrite")
    references: Optional[List[str]] = Field(None, description="Reference URLs cited by a rewrite")
    published_at: Optional[datetime] = Field(None, description="Original publication date")

    @field_serializer("published_at")
    def serialize_published_at(self, value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class StoredArticle(BaseModel):
    """Article record as returned by the store."""

    model_config = ConfigDict(extra="ignore")

    id: Union[int, str] = Field(..., description="Store identifier")
    title: str = Field(..., description="Article title")
    content: str = Field("", description="Article body text")
    source_url: Optional[str] = Field(None, description="Acquisition URL")
    version: ArticleVersion = Field(ArticleVersion.ORIGINAL, description="original or rewritten")
    is_rewritten: bool = Field(False, description="Whether a rewrite has been published")
    parent_article_id: Optional[Union[int, str]] = Field(None, description="Source article of a rewrite")
    references: List[str] = Field(default_factory=list, description="Cited reference URLs")
    published_at: Optional[datetime] = Field(None, description="Original publication date")
    created_at: Optional[datetime] = Field(None, description="Store creation timestamp")
