# notedraw_app/ai/organizer.py
# -*- coding: utf-8 -*-
"""Organizador: quebra o texto em cartas de até N seções via GLM."""
from __future__ import annotations
import json
import re

import requests
from flask import current_app

from .types import AISettings, CardStructure, ContentModule

GLM_TIMEOUT = 60
_JSON_OBJ_RE = re.compile(r"\{.*\}", re.S)


class OrganizerError(Exception):
    pass


def build_analyze_prompt(text: str, language: str, mode: str, max_sections: int = 4,
                         compact_max_cards: int = 1) -> str:
    zh = language == "zh"
    if mode == "compact":
        mode_rule = (
            f"【强制要求】用户选择了精简模式，你必须只生成{compact_max_cards}张卡片，每张最多{max_sections}个知识点。选择最重要的内容。"
            if zh else
            f"[STRICT] User selected compact mode. You MUST output at most {compact_max_cards} card(s) "
            f"with max {max_sections} sections. Pick the most important content."
        )
    else:
        mode_rule = (
            f"【详细模式】根据知识点数量决定卡片数量：≤{max_sections}个知识点=1张图，否则多张图（每张≤{max_sections}个Section）"
            if zh else
            f"[DETAILED MODE] Decide card count by knowledge points: <= {max_sections} points = 1 card, "
            f"otherwise multiple cards (each <= {max_sections} sections)"
        )

    intro = (
        "你是一位视觉笔记架构师，专精于将长文转化为结构化的视觉笔记。" if zh else
        "You are a Visual Note Architect, expert at transforming long text into structured visual notes."
    )
    rules = (
        "- heading：≤8字，精炼概括\n"
        "- keywords：2-3个可理解的短语，每个5-10字，会显示在图片上\n"
        "- summary：30-50字，2-3个完整句子，仅用于编辑参考\n"
        "所有 heading、keywords 和 summary 都必须使用中文。"
        if zh else
        "- heading: <= 8 words, concise summary\n"
        "- keywords: 2-3 understandable phrases (5-10 words each), displayed on the image\n"
        "- summary: 2-3 complete sentences, for editing reference only\n"
        "All heading, keywords and summary MUST be in English."
    )
    schema = (
        '{"totalKnowledgePoints": 3, "cards": [{"cardIndex": 1, "cardTitle": "...", '
        '"sections": [{"heading": "...", "keywords": ["...", "..."], "summary": "..."}]}]}'
    )
    closing = "只返回JSON，不要任何解释或markdown代码块标记。" if zh else \
        "Return ONLY the JSON, no explanations or markdown code blocks."

    return (
        f"{intro}\n\n{mode_rule}\n\n{rules}\n\n"
        f'Text to analyze:\n"""\n{text}\n"""\n\n'
        f"Response format (strict JSON):\n{schema}\n\n{closing}"
    )


def parse_analysis(raw: str) -> dict:
    """Tolera cercas ``` e texto em volta do objeto JSON."""
    s = (raw or "").strip()
    if s.startswith("```json"):
        s = s[7:]
    if s.startswith("```"):
        s = s[3:]
    if s.endswith("```"):
        s = s[:-3]
    s = s.strip()
    m = _JSON_OBJ_RE.search(s)
    if m:
        s = m.group(0)
    try:
        return json.loads(s)
    except ValueError as e:
        raise OrganizerError(f"Invalid JSON from organizer: {e}") from e


def to_structure(card: dict, total_cards: int, max_sections: int) -> CardStructure:
    sections = (card.get("sections") or [])[:max_sections]
    idx = card.get("cardIndex") or 1
    subtitle = f" ({idx}/{total_cards})" if total_cards > 1 else ""
    keywords = [k for s in sections for k in (s.get("keywords") or [])]
    return CardStructure(
        title=(card.get("cardTitle") or "") + subtitle,
        summary_context="、".join(s.get("heading", "") for s in sections),
        visual_theme_keywords=", ".join(keywords[:5]),
        modules=[
            ContentModule(
                id=str(i + 1),
                heading=s.get("heading", ""),
                content=s.get("summary", ""),
                keywords=list(s.get("keywords") or []),
            )
            for i, s in enumerate(sections)
        ],
    )


def call_glm(prompt: str, settings: AISettings) -> str:
    if not settings.glm_api_key:
        raise OrganizerError("GLM_API_KEY is not set")
    r = requests.post(
        f"{settings.glm_base_url.rstrip('/')}/chat/completions",
        headers={"Authorization": f"Bearer {settings.glm_api_key}", "Content-Type": "application/json"},
        json={
            "model": settings.glm_model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": 0.1,
        },
        timeout=GLM_TIMEOUT,
    )
    if r.status_code >= 400:
        raise OrganizerError(f"GLM API error: {r.status_code} - {r.text}")
    try:
        return r.json()["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise OrganizerError("Unexpected GLM response") from e


def _mock_structures(text: str, language: str) -> list[CardStructure]:
    count = 2 if len(text) > 500 else 1
    zh = language == "zh"
    out = []
    for i in range(count):
        out.append(CardStructure(
            title=(f"开发模式卡片 {i + 1}/{count}" if zh else f"Dev Mode Card {i + 1}/{count}"),
            summary_context=(f"开发占位模式的模拟数据。原文长度: {len(text)}字符" if zh
                             else f"Mock data from dev placeholder mode. Input length: {len(text)} chars"),
            visual_theme_keywords="development, placeholder, mock, test",
            modules=[
                ContentModule(id="1", heading=("模拟知识点 1" if zh else "Mock Point 1"),
                              content=text[:100] + ("..." if len(text) > 100 else ""),
                              keywords=["mock", "dev", "test"]),
                ContentModule(id="2", heading=("模拟知识点 2" if zh else "Mock Point 2"),
                              content=("开发模式下不调用真实AI API" if zh else "Real AI API is not called in dev mode"),
                              keywords=["placeholder", "development"]),
            ],
        ))
    return out


def organize(input_text: str, language: str, settings: AISettings, mode: str = "detailed") -> list[CardStructure]:
    text = (input_text or "").strip()
    if not text:
        raise OrganizerError("Input text is empty")
    if len(text) > settings.max_input_length:
        raise OrganizerError(f"Text too long. Maximum {settings.max_input_length} characters allowed.")

    if settings.dev_placeholder_mode:
        current_app.logger.info("Organizer running in placeholder mode")
        return _mock_structures(text, language)

    prompt = build_analyze_prompt(text, language, mode, settings.max_sections_per_card, settings.compact_max_cards)
    result = parse_analysis(call_glm(prompt, settings))
    cards = result.get("cards") or []
    if not cards:
        raise OrganizerError("No cards generated")
    if mode == "compact":
        cards = cards[: max(settings.compact_max_cards, 1)]
    current_app.logger.info("Organizer: %s knowledge points, %s cards",
                            result.get("totalKnowledgePoints"), len(cards))
    return [to_structure(c, len(cards), settings.max_sections_per_card) for c in cards]
