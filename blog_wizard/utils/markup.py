import re
import html
from typing import List, Optional, Tuple

from blog_wizard.core.config import settings
from blog_wizard.engine.schemas import INLINE_IMAGE_PLACEHOLDER, Article, GeneratedImage
from blog_wizard.utils.image import image_to_data_url

_HEADING = re.compile(r"^(#{2,3})\s+(.+?)\s*$")
_BOLD = re.compile(r"\*\*(.+?)\*\*")


def _render_inline(text: str) -> str:
    return _BOLD.sub(r"<strong>\1</strong>", text)


def render_markup(text: str) -> str:
    """
    Convert the article's lightweight markup into HTML.

    `## x` and `### x` at the start of a line become <h2>/<h3>, `**x**`
    becomes <strong>, and remaining line breaks become <br/>. The output
    holds no newlines, so running it again on its own output is a no-op.
    """
    blocks: List[Tuple[bool, str]] = []
    for line in text.split("\n"):
        match = _HEADING.match(line.strip())
        if match:
            level = len(match.group(1))
            blocks.append((True, f"<h{level}>{_render_inline(match.group(2))}</h{level}>"))
        else:
            blocks.append((False, _render_inline(line)))

    # blank lines around headings carry no spacing of their own
    blocks = [
        block for i, block in enumerate(blocks)
        if block[0] or block[1].strip()
        or not ((i > 0 and blocks[i - 1][0]) or (i + 1 < len(blocks) and blocks[i + 1][0]))
    ]

    rendered = ""
    for i, (is_heading, fragment) in enumerate(blocks):
        if i > 0 and not is_heading and not blocks[i - 1][0]:
            rendered += "<br/>"
        rendered += fragment
    return rendered


def split_content(content: str) -> Tuple[str, Optional[str]]:
    """
    Split the body at the inline image placeholder.

    Returns (before, after); `after` is None when the body has no
    placeholder. Extra placeholders after the first are dropped.
    """
    before, separator, after = content.partition(INLINE_IMAGE_PLACEHOLDER)
    if not separator:
        return content, None
    return before, after.replace(INLINE_IMAGE_PLACEHOLDER, "")


def _figure(image: GeneratedImage, alt: str, caption: str, css_class: str) -> str:
    return (
        f'<figure class="{css_class}">'
        f'<img src="{image_to_data_url(image)}" alt="{html.escape(alt, quote=True)}"/>'
        f'<figcaption>{html.escape(caption)}</figcaption>'
        f'</figure>'
    )


def render_article_html(
    article: Article,
    featured_image: Optional[GeneratedImage] = None,
    inline_image: Optional[GeneratedImage] = None,
) -> str:
    """WordPress-ready body: featured figure, first body part, inline figure, second body part"""
    before, after = split_content(article.content)
    sections = []

    if featured_image is not None:
        sections.append(_figure(
            featured_image,
            alt=article.primary_keyword or article.title,
            caption="AI-generated featured image",
            css_class="featured-image",
        ))

    sections.append(f'<div class="article-body">{render_markup(before)}</div>')

    if after is not None:
        if inline_image is not None:
            sections.append(_figure(
                inline_image,
                alt="Article illustration",
                caption="Figure 1: contextual illustration",
                css_class="inline-image",
            ))
        if after.strip():
            sections.append(f'<div class="article-body">{render_markup(after)}</div>')

    return "\n".join(sections)


def render_preview_page(
    article: Article,
    featured_image: Optional[GeneratedImage] = None,
    inline_image: Optional[GeneratedImage] = None,
) -> str:
    """Standalone HTML document for previewing the article in a browser"""
    keyword = article.primary_keyword
    badge = f'<span class="keyword">{html.escape(keyword)}</span>\n' if keyword else ""
    return (
        "<!DOCTYPE html>\n"
        f'<html lang="{settings.ARTICLE_LOCALE}">\n'
        "<head>\n"
        '<meta charset="utf-8"/>\n'
        f"<title>{html.escape(article.title)}</title>\n"
        f'<meta name="description" content="{html.escape(article.meta_description, quote=True)}"/>\n'
        f'<meta name="keywords" content="{html.escape(", ".join(article.keywords), quote=True)}"/>\n'
        "</head>\n"
        "<body>\n"
        "<article>\n"
        f"{badge}"
        f"<h1>{html.escape(article.title)}</h1>\n"
        f"{render_article_html(article, featured_image, inline_image)}\n"
        "</article>\n"
        "</body>\n"
        "</html>\n"
    )
