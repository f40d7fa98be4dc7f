# notedraw_app/ai/styles.py
# -*- coding: utf-8 -*-
from __future__ import annotations

DEFAULT_STYLE = "sketch"

VISUAL_STYLES = {
    "sketch": {
        "name": {"en": "Hand-drawn Sketch", "zh": "手绘清新"},
        "description": {
            "en": "Warm marker style with soft colors and doodle elements",
            "zh": "马克笔手绘风格，柔和配色，涂鸦元素",
        },
        "preview_colors": ["#FFE4E1", "#98D8C8", "#F7DC6F", "#AED6F1"],
        "prompt_keywords": "hand-drawn style, marker pen illustration, soft pastel colors, cute doodles, "
                           "warm and friendly, sketch notes style, whiteboard illustration",
        "color_palette": "soft pastels, warm tones, mint green, coral pink, light blue",
        "negative_prompt": "photorealistic, 3D render, dark colors, complex gradients",
    },
    "business": {
        "name": {"en": "Professional Business", "zh": "商务专业"},
        "description": {
            "en": "Clean lines with navy blue palette and icon-based design",
            "zh": "简洁线条，深蓝配色，图标化设计",
        },
        "preview_colors": ["#1E3A5F", "#FFFFFF", "#D4AF37", "#E8E8E8"],
        "prompt_keywords": "professional infographic, clean minimal design, corporate style, navy blue and white, "
                           "icon-based, data visualization, business presentation",
        "color_palette": "navy blue, white, light gray, accent gold",
        "negative_prompt": "cartoon, childish, hand-drawn, messy",
    },
    "cute": {
        "name": {"en": "Cute Illustration", "zh": "可爱插画"},
        "description": {
            "en": "Cartoon characters with rainbow colors and sticker-like feel",
            "zh": "卡通人物，彩虹配色，贴纸感",
        },
        "preview_colors": ["#FFB6C1", "#FFFACD", "#DDA0DD", "#87CEEB"],
        "prompt_keywords": "kawaii style, cute cartoon illustration, rainbow colors, sticker art, chibi characters, "
                           "playful design, social media friendly",
        "color_palette": "rainbow colors, pink, yellow, light purple, bright and cheerful",
        "negative_prompt": "realistic, dark, serious, corporate",
    },
    "minimal": {
        "name": {"en": "Minimal Line Art", "zh": "极简线稿"},
        "description": {
            "en": "Black and white lines with geometric shapes and whitespace",
            "zh": "黑白线条，几何形状，大量留白",
        },
        "preview_colors": ["#FFFFFF", "#2C2C2C", "#E0E0E0", "#F5F5F5"],
        "prompt_keywords": "minimalist line art, black and white, geometric shapes, lots of white space, "
                           "clean typography, modern design, abstract",
        "color_palette": "black, white, light gray",
        "negative_prompt": "colorful, detailed, complex, busy",
    },
    "chalkboard": {
        "name": {"en": "Vintage Chalkboard", "zh": "复古黑板"},
        "description": {
            "en": "Chalkboard background with chalk text and hand-written feel",
            "zh": "黑板背景，粉笔字，手写风格",
        },
        "preview_colors": ["#2D4A3E", "#FFFFFF", "#F4D03F", "#E8DAEF"],
        "prompt_keywords": "chalkboard style, chalk drawing, blackboard background, hand-written text, educational, "
                           "vintage classroom, lecture notes",
        "color_palette": "dark green or black background, white and colored chalk",
        "negative_prompt": "digital, modern, clean lines, bright colors",
    },
}


def get_style_config(style: str) -> dict:
    return VISUAL_STYLES.get(style) or VISUAL_STYLES[DEFAULT_STYLE]


def all_styles(language: str = "en") -> list[dict]:
    return [
        {"id": sid, "name": cfg["name"].get(language, cfg["name"]["en"]),
         "description": cfg["description"].get(language, cfg["description"]["en"]),
         "previewColors": cfg["preview_colors"]}
        for sid, cfg in VISUAL_STYLES.items()
    ]
