from blog_wizard.engine.schemas import GeneratedImage
from blog_wizard.utils.image import image_to_data_url, inspect_image, media_filename
from blog_wizard.utils.markup import render_article_html, render_markup, render_preview_page, split_content

from conftest import make_article, make_png

PLACEHOLDER = "[[INLINE_IMAGE_PLACEHOLDER]]"


def test_headings_and_bold():
    html = render_markup("## Origem\nO **café** nasceu na Etiópia.\n### Preparo\nÁgua quente.")

    assert html == (
        "<h2>Origem</h2>"
        "O <strong>café</strong> nasceu na Etiópia."
        "<h3>Preparo</h3>"
        "Água quente."
    )


def test_line_breaks_between_paragraph_lines():
    assert render_markup("first line\nsecond line") == "first line<br/>second line"


def test_blank_lines_next_to_headings_are_dropped():
    assert render_markup("intro\n\n## Title\n\nbody") == "intro<h2>Title</h2>body"


def test_no_markup_markers_survive():
    html = render_markup("## A **bold** heading\n**one** and **two**\n### x")
    assert "**" not in html
    assert "##" not in html


def test_render_is_idempotent():
    source = "## Origem\nO **café** nasceu.\n\nSegundo parágrafo\n### Fim"
    once = render_markup(source)
    assert render_markup(once) == once


def test_single_hash_and_deep_headings_stay_text():
    assert render_markup("# not a heading") == "# not a heading"
    assert render_markup("#### nor this") == "#### nor this"


def test_split_without_placeholder():
    assert split_content("just text") == ("just text", None)


def test_split_on_placeholder():
    assert split_content(f"before{PLACEHOLDER}after") == ("before", "after")


def test_split_drops_extra_placeholders():
    before, after = split_content(f"a{PLACEHOLDER}b{PLACEHOLDER}c")
    assert before == "a"
    assert after == "bc"


def test_article_html_places_images():
    featured = GeneratedImage(data=make_png((1, 1, 1)))
    inline = GeneratedImage(data=make_png((2, 2, 2)))
    html = render_article_html(make_article(), featured, inline)

    featured_at = html.index(image_to_data_url(featured))
    origin_at = html.index("<h2>Origem</h2>")
    inline_at = html.index(image_to_data_url(inline))
    preparo_at = html.index("<h3>Preparo</h3>")
    assert featured_at < origin_at < inline_at < preparo_at
    assert 'alt="café"' in html
    assert PLACEHOLDER not in html


def test_article_html_without_images_omits_figures():
    html = render_article_html(make_article())

    assert "<figure" not in html
    assert PLACEHOLDER not in html
    assert "<h3>Preparo</h3>" in html


def test_article_html_without_placeholder_skips_inline_image():
    article = make_article(content="## Só texto\nNada de imagem.")
    inline = GeneratedImage(data=make_png((2, 2, 2)))

    html = render_article_html(article, None, inline)

    assert image_to_data_url(inline) not in html
    assert "<h2>Só texto</h2>" in html


def test_preview_page_escapes_metadata():
    article = make_article(title="Café & <leite>", metaDescription='Diga "olá"')

    page = render_preview_page(article)

    assert '<html lang="pt-BR">' in page
    assert "<h1>Café &amp; &lt;leite&gt;</h1>" in page
    assert 'content="Diga &quot;olá&quot;"' in page
    assert '<span class="keyword">café</span>' in page


def test_inspect_image_and_filenames():
    image = GeneratedImage(data=make_png(size=(32, 18)))

    assert inspect_image(image) == (32, 18, "PNG")
    assert inspect_image(GeneratedImage(data=b"not an image")) is None
    assert media_filename("post-featured", "image/png") == "post-featured.png"
    assert media_filename("post-featured", "image/jpeg") == "post-featured.jpg"
    assert media_filename("post-video", "video/mp4") == "post-video.mp4"
