"""Build page structures from free-text instructions."""

import logging
import re

from pydantic import ValidationError

from memberpages.auth.schemas import Principal
from memberpages.auth.utils import require_admin
from memberpages.llm.service import LLMService, get_llm_service
from memberpages.pages.schemas import (
    AudioItem,
    PageDocument,
    Section,
    TextItem,
    UrlItem,
    VideoItem,
)
from memberpages.pages.service import now_ms
from memberpages.pages.slugs import slugify

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "新規ページ"
GENERATED_DESCRIPTION = "AI指示から生成したページ構成です。"
TITLE_SPLIT_PATTERN = re.compile(r"[。\n]")

SYSTEM_PROMPT = """You design pages for a members-only learning site.
Answer with a single JSON object and nothing else, shaped as:
{"title": str, "description": str, "sections": [{"id": str, "title": str,
"items": [{"id": str, "type": "text"|"video"|"audio"|"url", "title": str,
"text": str (text only), "url": str (video, audio, url)}]}]}
Section ids are unique in the page and item ids are unique in their section.
Write titles and text in the language of the instruction."""


def title_from_instruction(instruction: str) -> str:
    """First sentence or line of the instruction, or 新規ページ."""
    return TITLE_SPLIT_PATTERN.split(instruction.strip(), maxsplit=1)[0].strip() or DEFAULT_TITLE


def page_slug(title: str) -> str:
    """Slug from the title, or a timestamp slug when nothing ASCII is left."""
    return slugify(title) or f"page-{now_ms()}"


def build_template(instruction: str) -> PageDocument:
    """Build a page skeleton from keywords in the instruction.

    Every page gets an intro section. Sections for video (動画), audio
    (音声) and links (リンク or URL) are added when the instruction
    mentions them.

    Args:
        instruction: Free-text instruction.

    Returns:
        PageDocument: Unpublished page, not persisted.
    """
    title = title_from_instruction(instruction)
    sections = [
        Section(
            id="intro",
            title="概要",
            items=[TextItem(id="intro-text", text=f"{title}の要点とゴールをまとめます。")],
        )
    ]
    if "動画" in instruction:
        sections.append(
            Section(
                id="videos",
                title="動画コンテンツ",
                items=[VideoItem(id="video-1", title="メイン動画", url="https://www.youtube.com/embed/")],
            )
        )
    if "音声" in instruction:
        sections.append(
            Section(
                id="audio",
                title="音声コンテンツ",
                items=[AudioItem(id="audio-1", title="補足音声", url="")],
            )
        )
    if "リンク" in instruction or "URL" in instruction:
        sections.append(
            Section(
                id="links",
                title="参考リンク",
                items=[UrlItem(id="link-1", title="参考リンク", url="https://example.com")],
            )
        )

    return PageDocument(
        slug=page_slug(title),
        title=title,
        description=GENERATED_DESCRIPTION,
        published=False,
        sections=sections,
    )


class PageGenerator:
    """Generates page structures, asking the LLM when one is configured.

    Attributes:
        llm: LLM client.
    """

    def __init__(self, llm: LLMService | None = None):
        """Initialize the generator.

        Args:
            llm: LLM client (defaults to the shared instance).
        """
        self.llm = llm or get_llm_service()

    async def _from_llm(self, instruction: str) -> PageDocument:
        data = await self.llm.ask_json(instruction, system_prompt=SYSTEM_PROMPT)
        title = str(data.get("title") or "").strip() or title_from_instruction(instruction)
        return PageDocument.model_validate(
            {
                "slug": page_slug(title),
                "title": title,
                "description": data.get("description") or GENERATED_DESCRIPTION,
                "published": False,
                "sections": data.get("sections") or [],
            }
        )

    async def generate(self, principal: Principal, instruction: str) -> PageDocument:
        """Build a page from an instruction.

        Falls back to the keyword template when the LLM is not configured,
        fails, or returns something that is not a valid page.

        Args:
            principal: Caller, must be an approved admin.
            instruction: Free-text instruction.

        Returns:
            PageDocument: Unpublished page, not persisted.

        Raises:
            AdminRequiredError: If the principal is not an approved admin.
            ValueError: If the instruction is blank.
        """
        require_admin(principal)
        instruction = instruction.strip()
        if not instruction:
            raise ValueError("Instruction is empty")

        if self.llm.configured:
            try:
                page = await self._from_llm(instruction)
                if page.sections:
                    logger.info(f"Generated page {page.slug} with LLM")
                    return page
                logger.warning("LLM returned a page without sections, using template")
            except (ValueError, ValidationError) as e:
                logger.warning(f"LLM page generation failed, using template: {e}")

        return build_template(instruction)


def get_page_generator() -> PageGenerator:
    """Get page generator instance."""
    return PageGenerator()
