# notedraw_app/ai/types.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from dataclasses import dataclass, field, asdict


@dataclass
class ContentModule:
    id: str
    heading: str
    content: str
    keywords: list[str] = field(default_factory=list)


@dataclass
class CardStructure:
    """Saída do organizador para uma carta."""
    title: str
    summary_context: str
    visual_theme_keywords: str
    modules: list[ContentModule] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "CardStructure":
        return cls(
            title=d.get("title", ""),
            summary_context=d.get("summary_context", ""),
            visual_theme_keywords=d.get("visual_theme_keywords", ""),
            modules=[
                ContentModule(
                    id=str(m.get("id", i + 1)),
                    heading=m.get("heading", ""),
                    content=m.get("content", ""),
                    keywords=list(m.get("keywords") or []),
                )
                for i, m in enumerate(d.get("modules") or [])
            ],
        )


@dataclass
class DesignedPrompt:
    prompt: str
    negative_prompt: str


@dataclass
class PaintResult:
    success: bool
    image_url: str | None = None
    error_message: str | None = None


@dataclass
class NoteUnit:
    order: int
    original_text: str
    structure: CardStructure | None = None
    prompt: str | None = None
    image_url: str | None = None
    status: str = "pending"
    error_message: str | None = None


@dataclass
class AISettings:
    glm_api_key: str = ""
    glm_base_url: str = "https://open.bigmodel.cn/api/paas/v4"
    glm_model: str = "glm-4-flash"
    image_provider: str = "apimart"
    image_model: str = "gpt-4o-image"
    openai_api_key: str = ""
    openai_base_url: str = "https://api.apimart.ai/v1"
    gemini_api_key: str = ""
    gemini_base_url: str = "https://api.nanobananai.com/v1beta"
    custom_base_url: str = ""
    custom_api_key: str = ""
    use_placeholder_image: bool = False
    dev_placeholder_mode: bool = False
    max_input_length: int = 10000
    max_sections_per_card: int = 4
    compact_max_cards: int = 1
