"""
Blog schemas
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, field_validator

from app.schemas.common import CamelModel


class PostCard(CamelModel):
    slug: str
    title: str
    image_url: str
    category: str
    date: Optional[datetime] = None
    author: str
    read_time: int
    comments: int = 0
    views: int = 0


class PostListResponse(CamelModel):
    posts: List[PostCard]
    total_pages: int


class PostResponse(BaseModel):
    id: str
    slug: str
    title: str
    content: Optional[str] = None
    excerpt: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    author_name: Optional[str] = None
    tags: List[str] = []
    is_published: bool = False
    show_toc: bool = False
    view_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("tags", mode="before")
    @classmethod
    def default_list(cls, v):
        return v or []

    class Config:
        from_attributes = True


class PostDetailResponse(CamelModel):
    post: PostResponse
    related_posts: List[PostCard]
