import logging

from ..schemas import ImageSlot
from ..state import ArticleState, GenerationStatus
from blog_wizard.core.exceptions import StaleResultError
from blog_wizard.utils.concurrency import gather_settled

logger = logging.getLogger(__name__)


async def draft_article(state: ArticleState):
    """Text stage: any failure here is fatal to the whole pipeline"""
    session = state["session"]
    epoch = state["epoch"]

    article = await state["gateway"].generate_article(
        state["topic"],
        state["options"],
        state["reference_url"],
    )

    # the article must be visible before any image request starts
    session.commit_article(epoch, article)
    session.set_status(GenerationStatus.GENERATING_IMAGES)

    logger.info(f"[DraftArticle] Session {session.id}: article '{article.title}' committed")
    return {"article": article}


async def generate_images(state: ArticleState):
    """Featured and inline images in parallel; a failed branch is logged and skipped"""
    session = state["session"]
    gateway = state["gateway"]
    epoch = state["epoch"]
    article = state["article"]

    prompts = {
        ImageSlot.FEATURED: article.image_prompts.featured,
        ImageSlot.INLINE: article.image_prompts.inline,
    }

    async def generate_slot(slot: ImageSlot, prompt: str):
        image = await gateway.generate_image(prompt)
        session.commit_image(epoch, slot, image)
        return image

    results = await gather_settled({
        slot: generate_slot(slot, prompt)
        for slot, prompt in prompts.items()
        if prompt and prompt.strip()
    })

    failed_images = []
    for slot, outcome in results.items():
        if outcome.ok:
            logger.info(f"[GenerateImages] Session {session.id}: {slot.value} image ready")
        elif isinstance(outcome.error, StaleResultError):
            logger.warning(f"[GenerateImages] Session {session.id}: dropped stale {slot.value} image")
        else:
            logger.error(f"[GenerateImages] Session {session.id}: failed to generate {slot.value} image: {outcome.error}")
            failed_images.append(slot.value)

    return {"failed_images": failed_images}
