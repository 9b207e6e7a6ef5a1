import asyncio

import pytest

from blog_wizard.core.exceptions import (
    EmptyResponseError,
    InvalidSubmissionError,
    MalformedResponseError,
    MissingArtifactError,
    SessionBusyError,
    StaleResultError,
    VideoKeyRequiredError,
    VideoTimeoutError,
)
from blog_wizard.engine.schemas import ArticleLength, GenerationOptions, Tone
from blog_wizard.engine.state import GenerationStatus
from blog_wizard.services.generation_service import ARTICLE_ALERT, EDIT_ALERT, VIDEO_ALERT
from blog_wizard.utils.image import image_to_data_url
from blog_wizard.utils.markup import render_article_html

from conftest import FEATURED_PROMPT, INLINE_PROMPT, make_article, wait_until

S = GenerationStatus


# ---------------------------------------------------------------------------
# article pipeline
# ---------------------------------------------------------------------------

async def test_successful_pipeline_status_path(service, session, gateway):
    options = GenerationOptions(tone=Tone.HUMOROUS, length=ArticleLength.LONG, target_audience="Baristas")

    assert await service.generate_article(session, "café", options=options)

    assert session.status_history == [S.IDLE, S.GENERATING_TEXT, S.GENERATING_IMAGES, S.COMPLETE]
    assert session.article.title == "Café: o guia completo"
    assert session.featured_image == gateway.results[FEATURED_PROMPT]
    assert session.inline_image == gateway.results[INLINE_PROMPT]
    assert gateway.last_article_args == ("café", options, None)


async def test_article_is_visible_before_images_start(service, session, gateway):
    observed = []
    gateway.observers["generate_image"] = lambda: observed.append((session.article is not None, session.status))

    await service.generate_article(session, "café")

    assert observed == [(True, S.GENERATING_IMAGES), (True, S.GENERATING_IMAGES)]
    assert gateway.calls == ["generate_article", "generate_image", "generate_image"]


async def test_images_run_in_parallel(service, session, gateway):
    release = asyncio.Event()
    gateway.blocks["generate_image"] = release

    run = asyncio.ensure_future(service.generate_article(session, "café"))
    await wait_until(lambda: gateway.calls.count("generate_image") == 2)
    assert session.status == S.GENERATING_IMAGES

    release.set()
    assert await run
    assert session.status == S.COMPLETE


@pytest.mark.parametrize("error", [
    EmptyResponseError("empty"),
    MalformedResponseError("bad json", raw_text="{"),
    ConnectionError("network down"),
])
async def test_text_failure_is_fatal(service, session, gateway, error):
    gateway.results["generate_article"] = error

    assert not await service.generate_article(session, "café")

    assert session.status == S.ERROR
    assert session.alert == ARTICLE_ALERT
    assert session.article is None
    assert "generate_image" not in gateway.calls
    assert session.status_history == [S.IDLE, S.GENERATING_TEXT, S.ERROR]


async def test_one_image_failure_still_completes(service, session, gateway):
    gateway.results[INLINE_PROMPT] = EmptyResponseError("blocked")

    assert await service.generate_article(session, "café")

    assert session.status == S.COMPLETE
    assert session.featured_image is not None
    assert session.inline_image is None


async def test_both_image_failures_still_complete(service, session, gateway):
    gateway.results[FEATURED_PROMPT] = EmptyResponseError("blocked")
    gateway.results[INLINE_PROMPT] = ConnectionError("network down")

    assert await service.generate_article(session, "café")

    assert session.status == S.COMPLETE
    assert session.article is not None
    assert session.images == {}
    html = render_article_html(session.article, session.featured_image, session.inline_image)
    assert "<figure" not in html


async def test_missing_image_prompt_is_skipped(service, session, gateway):
    gateway.results["generate_article"] = make_article(imagePrompts={"featured": FEATURED_PROMPT})

    assert await service.generate_article(session, "café")

    assert gateway.calls.count("generate_image") == 1
    assert session.inline_image is None


async def test_blank_submission_is_rejected_without_status_change(service, session, gateway):
    with pytest.raises(InvalidSubmissionError):
        await service.generate_article(session, "   ", "")

    assert session.status_history == [S.IDLE]
    assert gateway.calls == []


async def test_reference_url_alone_is_accepted(service, session, gateway):
    assert await service.generate_article(session, "", "https://example.test/post")
    assert gateway.last_article_args[2] == "https://example.test/post"


async def test_resubmission_while_busy_is_rejected(service, session, gateway):
    release = asyncio.Event()
    gateway.blocks["generate_article"] = release
    run = asyncio.ensure_future(service.generate_article(session, "café"))
    await wait_until(lambda: "generate_article" in gateway.calls)

    with pytest.raises(SessionBusyError):
        service.begin_article(session, "chá")

    release.set()
    assert await run
    assert gateway.calls.count("generate_article") == 1


async def test_new_generation_replaces_previous_results(service, session, gateway):
    await service.generate_article(session, "café")
    gateway.results[INLINE_PROMPT] = EmptyResponseError("blocked")

    await service.generate_article(session, "chá")

    assert session.status == S.COMPLETE
    assert session.inline_image is None


# ---------------------------------------------------------------------------
# discard and stale results
# ---------------------------------------------------------------------------

async def test_discard_cancels_background_pipeline(service, session, gateway):
    gateway.blocks["generate_article"] = asyncio.Event()
    epoch = service.begin_article(session, "café")
    runner = asyncio.ensure_future(service.background_article(session, epoch, "café"))
    await wait_until(lambda: "generate_article" in gateway.calls)

    service.discard(session)

    assert await runner is None
    assert session.status == S.IDLE
    assert session.article is None
    assert session.pending_tasks == 0


async def test_stale_article_is_dropped(service, session, gateway):
    release = asyncio.Event()
    gateway.blocks["generate_article"] = release
    run = asyncio.ensure_future(service.generate_article(session, "café"))
    await wait_until(lambda: "generate_article" in gateway.calls)

    service.discard(session)
    release.set()

    assert not await run
    assert session.article is None
    assert session.status == S.IDLE
    assert "generate_image" not in gateway.calls


async def test_stale_images_are_dropped(service, session, gateway):
    release = asyncio.Event()
    gateway.blocks["generate_image"] = release
    run = asyncio.ensure_future(service.generate_article(session, "café"))
    await wait_until(lambda: gateway.calls.count("generate_image") == 2)

    service.discard(session)
    release.set()

    assert not await run
    assert session.images == {}
    assert session.status == S.IDLE


async def test_stale_text_failure_does_not_raise_alert(service, session, gateway):
    release = asyncio.Event()
    gateway.blocks["generate_article"] = release
    gateway.results["generate_article"] = ConnectionError("network down")
    run = asyncio.ensure_future(service.generate_article(session, "café"))
    await wait_until(lambda: "generate_article" in gateway.calls)

    service.discard(session)
    release.set()

    assert not await run
    assert session.status == S.IDLE
    assert session.alert is None


# ---------------------------------------------------------------------------
# image editing
# ---------------------------------------------------------------------------

async def test_edit_replaces_only_featured_image(service, session, gateway):
    await service.generate_article(session, "café")
    article, inline, old_featured = session.article, session.inline_image, session.featured_image
    html_before = render_article_html(article, session.featured_image, session.inline_image)

    edited = await service.edit_featured_image(session, "add a vintage filter")

    assert session.featured_image == edited == gateway.results["edit_image"]
    assert session.article is article
    assert session.inline_image is inline
    assert gateway.last_edit_args == (old_featured, "add a vintage filter")
    assert session.status_history[-2:] == [S.EDITING_IMAGE, S.IDLE]

    html_after = render_article_html(session.article, session.featured_image, session.inline_image)
    assert image_to_data_url(edited) in html_after
    assert image_to_data_url(old_featured) not in html_after
    assert html_after.replace(image_to_data_url(edited), "") == html_before.replace(image_to_data_url(old_featured), "")


async def test_edit_failure_keeps_previous_image(service, session, gateway):
    await service.generate_article(session, "café")
    previous = session.featured_image
    gateway.results["edit_image"] = EmptyResponseError("no image")

    with pytest.raises(EmptyResponseError):
        await service.edit_featured_image(session, "make it blue")

    assert session.featured_image is previous
    assert session.status == S.ERROR
    assert session.alert == EDIT_ALERT


async def test_edit_requires_featured_image_and_instruction(service, session, gateway):
    with pytest.raises(MissingArtifactError):
        await service.edit_featured_image(session, "make it blue")

    await service.generate_article(session, "café")
    with pytest.raises(InvalidSubmissionError):
        await service.edit_featured_image(session, "  ")
    assert "edit_image" not in gateway.calls


async def test_stale_edit_is_dropped(service, session, gateway):
    await service.generate_article(session, "café")
    release = asyncio.Event()
    gateway.blocks["edit_image"] = release
    run = asyncio.ensure_future(service.edit_featured_image(session, "make it blue"))
    await wait_until(lambda: "edit_image" in gateway.calls)

    service.discard(session)
    release.set()

    with pytest.raises(StaleResultError):
        await run
    assert session.featured_image is None
    assert session.status == S.IDLE


# ---------------------------------------------------------------------------
# video and narration
# ---------------------------------------------------------------------------

async def test_video_success_returns_to_idle(service, session, gateway):
    await service.generate_article(session, "café")
    featured = session.featured_image

    video = await service.generate_video(session)

    assert session.video == video
    assert gateway.last_video_image is featured
    assert session.status_history[-2:] == [S.GENERATING_VIDEO, S.IDLE]


async def test_video_timeout_sets_error(service, session, gateway):
    await service.generate_article(session, "café")
    gateway.results["generate_video"] = VideoTimeoutError("too slow")

    with pytest.raises(VideoTimeoutError):
        await service.generate_video(session)

    assert session.status == S.ERROR
    assert session.alert == VIDEO_ALERT
    assert session.video is None


async def test_closed_video_key_gate_leaves_status_untouched(service, session, gateway):
    await service.generate_article(session, "café")
    gateway.video_key_error = VideoKeyRequiredError("paid key needed")
    history = list(session.status_history)

    with pytest.raises(VideoKeyRequiredError):
        service.begin_video(session)

    assert session.status_history == history
    assert "generate_video" not in gateway.calls


async def test_video_requires_featured_image(service, session, gateway):
    with pytest.raises(MissingArtifactError):
        await service.generate_video(session)
    assert session.status == S.IDLE


async def test_discard_cancels_background_video(service, session, gateway):
    await service.generate_article(session, "café")
    gateway.blocks["generate_video"] = asyncio.Event()
    epoch = service.begin_video(session)
    runner = asyncio.ensure_future(service.background_video(session, epoch))
    await wait_until(lambda: "generate_video" in gateway.calls)

    service.discard(session)

    assert await runner is None
    assert session.video is None
    assert session.status == S.IDLE


async def test_video_blocks_other_actions(service, session, gateway):
    await service.generate_article(session, "café")
    release = asyncio.Event()
    gateway.blocks["generate_video"] = release
    run = asyncio.ensure_future(service.generate_video(session))
    await wait_until(lambda: "generate_video" in gateway.calls)

    with pytest.raises(SessionBusyError):
        await service.narrate_summary(session)
    with pytest.raises(SessionBusyError):
        await service.edit_featured_image(session, "make it blue")

    release.set()
    await run
    assert session.status == S.IDLE


async def test_narration_speaks_the_summary(service, session, gateway):
    await service.generate_article(session, "café")

    audio = await service.narrate_summary(session)

    assert audio == gateway.results["generate_speech"]
    assert gateway.last_speech_text == session.article.summary
    assert session.status_history[-2:] == [S.GENERATING_AUDIO, S.IDLE]


async def test_narration_requires_article(service, session):
    with pytest.raises(MissingArtifactError):
        await service.narrate_summary(session)
