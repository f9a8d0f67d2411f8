"""Blog feed — the static JSON the client renders as feeds and carousels.

Read-only; posts are authored outside this service.
"""

import json
from pathlib import Path

import structlog
from fastapi import APIRouter, Depends, HTTPException

from inkpress.auth.dependencies import get_app_settings
from inkpress.config import Settings

logger = structlog.get_logger()

router = APIRouter(prefix="/blog")

PACKAGED_FEED = Path(__file__).resolve().parent.parent / "data" / "blogs.json"


def load_feed(path: Path) -> list[dict]:
    with path.open(encoding="utf-8") as f:
        feed = json.load(f)
    if not isinstance(feed, list):
        raise ValueError(f"blog feed {path} must be a JSON array")
    return feed


@router.get("")
async def list_posts(settings: Settings = Depends(get_app_settings)):
    """Return every post in the feed."""
    path = settings.blog_feed_path or PACKAGED_FEED
    try:
        return load_feed(path)
    except (OSError, ValueError) as e:
        logger.error("blog.feed_unavailable", path=str(path), error=str(e))
        raise HTTPException(status_code=503, detail="Blog feed unavailable")


@router.get("/{post_id}")
async def get_post(post_id: str, settings: Settings = Depends(get_app_settings)):
    """Return one post by its id."""
    path = settings.blog_feed_path or PACKAGED_FEED
    try:
        feed = load_feed(path)
    except (OSError, ValueError) as e:
        logger.error("blog.feed_unavailable", path=str(path), error=str(e))
        raise HTTPException(status_code=503, detail="Blog feed unavailable")
    for post in feed:
        if str(post.get("id")) == post_id:
            return post
    raise HTTPException(status_code=404, detail="Post not found")
