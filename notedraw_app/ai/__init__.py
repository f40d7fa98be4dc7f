# notedraw_app/ai/__init__.py
# -*- coding: utf-8 -*-
"""Pipeline de geração: organizador -> designer -> painter."""
from __future__ import annotations
from typing import Callable

from flask import current_app

from ..services.config_cache import get_config, get_config_int
from .designer import design_prompt
from .organizer import organize, OrganizerError
from .painter import paint
from .styles import VISUAL_STYLES, get_style_config, all_styles
from .types import AISettings, CardStructure, NoteUnit


def settings_from_app() -> AISettings:
    """Config do app, com sobrescritas da categoria ``ai``/``limits`` do banco."""
    cfg = current_app.config
    return AISettings(
        glm_api_key=get_config("ai", "glm_api_key") or cfg.get("GLM_API_KEY", ""),
        glm_base_url=get_config("ai", "glm_base_url") or cfg.get("GLM_BASE_URL"),
        glm_model=get_config("ai", "glm_model") or cfg.get("GLM_MODEL", "glm-4-flash"),
        image_provider=cfg.get("IMAGE_PROVIDER", "apimart"),
        image_model=cfg.get("IMAGE_MODEL", "gpt-4o-image"),
        openai_api_key=cfg.get("OPENAI_API_KEY", ""),
        openai_base_url=cfg.get("OPENAI_BASE_URL", ""),
        gemini_api_key=cfg.get("GEMINI_IMAGE_API_KEY", ""),
        gemini_base_url=cfg.get("GEMINI_IMAGE_BASE_URL", ""),
        custom_base_url=cfg.get("CUSTOM_IMAGE_BASE_URL", ""),
        custom_api_key=cfg.get("CUSTOM_IMAGE_API_KEY", ""),
        use_placeholder_image=bool(cfg.get("USE_PLACEHOLDER_IMAGE")),
        dev_placeholder_mode=bool(cfg.get("DEV_PLACEHOLDER_MODE")),
        max_input_length=cfg["TEXT_LIMITS"]["MAX_INPUT_LENGTH"],
        max_sections_per_card=get_config_int("limits", "max_sections_per_card",
                                             cfg["CARD_LIMITS"]["MAX_SECTIONS_PER_CARD"]),
        compact_max_cards=get_config_int("limits", "compact_mode_max_cards",
                                         cfg["CARD_LIMITS"]["COMPACT_MODE_MAX_CARDS"]),
    )


def _paint_unit(unit: NoteUnit, style: str, mode: str, signature: str | None, settings: AISettings) -> NoteUnit:
    unit.status = "generating"
    designed = design_prompt(unit.structure, style, mode, signature)
    unit.prompt = designed.prompt
    result = paint(designed.prompt, settings, title=unit.structure.title or "Visual Note")
    if result.success:
        unit.image_url = result.image_url
        unit.status = "completed"
        unit.error_message = None
    else:
        unit.status = "failed"
        unit.error_message = result.error_message
    return unit


def generate(input_text: str, language: str, style: str, mode: str = "detailed",
             signature: str | None = None, settings: AISettings | None = None,
             can_paint: Callable[[int], bool] | None = None) -> list[NoteUnit]:
    """Roda o pipeline completo. Erro do organizador propaga; erro de uma carta só marca a carta.

    ``can_paint(concluidas)`` é consultado antes de cada imagem; se devolver
    False a carta falha com "Insufficient credits" sem chamar o painter.
    """
    settings = settings or settings_from_app()
    structures = organize(input_text, language, settings, mode=mode)
    units = [NoteUnit(order=i, original_text=input_text, structure=s) for i, s in enumerate(structures)]

    completed = 0
    for unit in units:
        if can_paint is not None and not can_paint(completed):
            unit.status = "failed"
            unit.error_message = "Insufficient credits"
            continue
        try:
            _paint_unit(unit, style, mode, signature, settings)
        except Exception as e:
            current_app.logger.exception("Card %s failed", unit.order)
            unit.status = "failed"
            unit.error_message = str(e) or "Unknown error"
        if unit.status == "completed":
            completed += 1
    return units


def regenerate_unit(structure: CardStructure, style: str, signature: str | None = None,
                    settings: AISettings | None = None, order: int = 0, original_text: str = "") -> NoteUnit:
    """Redesenha uma carta (sempre em modo detalhado)."""
    settings = settings or settings_from_app()
    unit = NoteUnit(order=order, original_text=original_text, structure=structure)
    return _paint_unit(unit, style, "detailed", signature, settings)


def paint_custom_prompt(prompt: str, title: str = "Visual Note", settings: AISettings | None = None):
    settings = settings or settings_from_app()
    return paint(prompt, settings, title=title)


__all__ = [
    "AISettings",
    "CardStructure",
    "NoteUnit",
    "OrganizerError",
    "VISUAL_STYLES",
    "all_styles",
    "generate",
    "get_style_config",
    "paint_custom_prompt",
    "regenerate_unit",
    "settings_from_app",
]
