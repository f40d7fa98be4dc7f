# notedraw_app/ai/designer.py
# -*- coding: utf-8 -*-
"""Designer: estrutura + estilo -> prompt de imagem."""
from __future__ import annotations

from .styles import get_style_config
from .types import CardStructure, DesignedPrompt

DEFAULT_SIGNATURE = "NoteDraw"
BASE_NEGATIVE = "blurry, low quality, distorted text, watermark, multiple frames, comic panels, photo-realistic"


def detailed_prompt(structure: CardStructure, style: str, signature: str = DEFAULT_SIGNATURE) -> str:
    cfg = get_style_config(style)
    sections = []
    for i, module in enumerate(structure.modules):
        phrases = ", ".join(f'"{k}"' for k in module.keywords[:3])
        sections.append(
            f'Section {i + 1}: "{module.heading}"\n'
            f'Icon: A cute hand-drawn icon representing "{module.heading}"\n'
            f"Text labels: {phrases}"
        )
    sections_block = "\n\n".join(sections)

    return f"""A cute hand-drawn notebook style infographic showing "{structure.title}".

Main title: "{structure.title}"

{len(structure.modules)} main sections with cute icons:
{sections_block}

Center connecting element: "{structure.summary_context}" with flowing arrows connecting all sections

Bottom right corner: "{signature}"

Style: {cfg["prompt_keywords"]}
Color palette: {cfg["color_palette"]}

Design requirements:
- Clear visual hierarchy with the title at top
- Each section has its own icon and section title
- Display the text labels clearly in each section (readable short phrases)
- Balanced layout: icons + text labels, not too crowded
- Aspect ratio: 3:4 (portrait, suitable for mobile)
- Theme: {structure.visual_theme_keywords}""".strip()


def compact_prompt(structure: CardStructure, style: str, signature: str = DEFAULT_SIGNATURE) -> str:
    cfg = get_style_config(style)
    keywords = [k for m in structure.modules for k in m.keywords][:6]
    shown = ", ".join(f'"{k}"' for k in keywords)
    return f"""A cute hand-drawn visual note card about "{structure.title}".

Central focus: {structure.summary_context}

Key points displayed with cute icons:
{shown}

Bottom right corner: "{signature}"

Style: {cfg["prompt_keywords"]}
Colors: {cfg["color_palette"]}

Requirements:
- Single cohesive illustration
- Clear, readable text labels
- Aspect ratio: 3:4""".strip()


def negative_prompt(style: str) -> str:
    return f"{get_style_config(style)['negative_prompt']}, {BASE_NEGATIVE}"


def design_prompt(structure: CardStructure, style: str, mode: str = "detailed",
                  signature: str | None = None) -> DesignedPrompt:
    signature = signature or DEFAULT_SIGNATURE
    if mode == "compact":
        prompt = compact_prompt(structure, style, signature)
    else:
        prompt = detailed_prompt(structure, style, signature)
    return DesignedPrompt(prompt=prompt, negative_prompt=negative_prompt(style))
