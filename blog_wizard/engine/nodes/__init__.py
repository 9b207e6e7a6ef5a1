from .article import (
    draft_article,
    generate_images,
)

__all__ = [
    "draft_article",
    "generate_images",
]
