"""
Blog Service

Published-post listing, cards and detail lookups, plus the admin post editor.
"""
import logging
from math import ceil
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationFailed
from app.core.utils import page_offset, slugify, total_pages
from app.models import Post
from app.schemas.admin import PostWrite
from app.schemas.blog import PostCard, PostDetailResponse, PostListResponse, PostResponse
from app.services.catalog import count_query, paginate
from app.services.storage import StorageService

logger = logging.getLogger(__name__)

ALL_POST_CATEGORIES = "All Categories"
WORDS_PER_MINUTE = 200
LATEST_POSTS_LIMIT = 4
RELATED_POSTS_LIMIT = 8


def read_time_minutes(content: Optional[str]) -> int:
    """Minutes to read at 200 words per minute, rounded up."""
    words = len(content.split(" ")) if content else 0
    return ceil(words / WORDS_PER_MINUTE)


def format_post_card(post) -> PostCard:
    return PostCard(
        slug=post.slug,
        title=post.title,
        image_url=post.image_url or settings.PLACEHOLDER_IMAGE_URL,
        category=post.category or "Uncategorized",
        date=post.created_at,
        author=post.author_name or "Anonymous",
        read_time=read_time_minutes(post.content),
        comments=0,
        views=post.view_count or 0,
    )


def build_post_query(search: Optional[str] = None, category: Optional[str] = None, sort: str = "Newest"):
    query = select(Post).where(Post.is_published.is_(True))
    if search:
        query = query.where(Post.title.ilike(f"%{search}%"))
    if category and category != ALL_POST_CATEGORIES:
        query = query.where(Post.category == category)

    if sort == "Oldest":
        query = query.order_by(Post.created_at.asc())
    elif sort == "Popular":
        query = query.order_by(Post.view_count.desc())
    else:
        query = query.order_by(Post.created_at.desc())
    return query


async def list_posts(
    db: AsyncSession,
    page: int = 1,
    search: Optional[str] = None,
    category: Optional[str] = None,
    sort: str = "Newest",
) -> PostListResponse:
    query = build_post_query(search, category, sort)
    page_size = settings.CATALOG_PAGE_SIZE

    count = await db.scalar(count_query(query)) or 0
    if page_offset(page, page_size) >= count:
        return PostListResponse(posts=[], total_pages=total_pages(count, page_size))

    result = await db.execute(paginate(query, page, page_size))
    posts = result.scalars().all()
    return PostListResponse(
        posts=[format_post_card(p) for p in posts],
        total_pages=total_pages(count, page_size),
    )


async def get_latest_posts(db: AsyncSession, limit: int = LATEST_POSTS_LIMIT) -> List[PostCard]:
    result = await db.execute(
        select(Post)
        .where(Post.is_published.is_(True))
        .order_by(Post.created_at.desc())
        .limit(limit)
    )
    return [format_post_card(p) for p in result.scalars().all()]


async def get_post_detail(db: AsyncSession, slug: str) -> PostDetailResponse:
    """Published post by slug plus related posts. Each view bumps the view count."""
    result = await db.execute(
        select(Post).where(Post.slug == slug, Post.is_published.is_(True))
    )
    post = result.scalar_one_or_none()
    if not post:
        raise NotFoundError("Post not found", details={"slug": slug})

    await db.execute(
        update(Post).where(Post.id == post.id).values(view_count=Post.view_count + 1)
    )
    await db.commit()

    related = await db.execute(
        select(Post)
        .where(
            Post.is_published.is_(True),
            Post.category == post.category,
            Post.id != post.id,
        )
        .order_by(Post.created_at.desc())
        .limit(RELATED_POSTS_LIMIT)
    )
    return PostDetailResponse(
        post=PostResponse.model_validate(post),
        related_posts=[format_post_card(p) for p in related.scalars().all()],
    )


async def list_post_categories(db: AsyncSession) -> List[str]:
    result = await db.execute(
        select(Post.category)
        .where(Post.is_published.is_(True), Post.category.isnot(None))
        .distinct()
    )
    return sorted(c for c in result.scalars().all() if c)


# =============================================================================
# ADMIN
# =============================================================================

async def get_post(db: AsyncSession, post_id: str) -> Post:
    post = await db.get(Post, post_id)
    if not post:
        raise NotFoundError("Post not found", details={"post_id": post_id})
    return post


def _apply_post(post: Post, data: PostWrite) -> None:
    slug = slugify(data.title)
    if not slug:
        raise ValidationFailed("Post title must contain letters or numbers.")
    post.title = data.title.strip()
    post.slug = slug
    post.content = data.content
    post.excerpt = data.excerpt
    post.image_url = data.image_url or None
    post.author_name = data.author_name
    post.category = data.category or None
    post.tags = data.tags
    post.is_published = data.is_published
    post.show_toc = data.show_toc


async def _save_post(db: AsyncSession, post: Post) -> Post:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValidationFailed(f"A post with the URL '{post.slug}' already exists.", details={"slug": post.slug})
    await db.refresh(post)
    return post


async def create_post(db: AsyncSession, data: PostWrite) -> Post:
    post = Post(view_count=0)
    _apply_post(post, data)
    db.add(post)
    post = await _save_post(db, post)
    logger.info(f"Post created: {post.slug} (published={post.is_published})")
    return post


async def update_post(db: AsyncSession, post_id: str, data: PostWrite) -> Post:
    """The slug follows the title, so renaming a post moves its URL."""
    post = await get_post(db, post_id)
    _apply_post(post, data)
    return await _save_post(db, post)


async def delete_post(db: AsyncSession, storage: StorageService, post_id: str) -> Post:
    post = await get_post(db, post_id)
    await db.delete(post)
    await db.commit()
    await storage.delete_by_url(post.image_url)
    logger.info(f"Post deleted: {post.slug}")
    return post
