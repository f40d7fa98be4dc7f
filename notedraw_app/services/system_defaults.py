# notedraw_app/services/system_defaults.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import json

from sqlalchemy import select

from ..extensions import db
from ..models.system_config import SystemConfig

DEFAULT_PACKAGES = [
    {"id": "starter", "name": "Starter", "credits": 100, "price": 9.9, "currency": "CNY", "price_id": ""},
    {"id": "standard", "name": "Standard", "credits": 500, "price": 39.9, "currency": "CNY", "price_id": "", "popular": True},
    {"id": "premium", "name": "Premium", "credits": 1200, "price": 79.9, "currency": "CNY", "price_id": ""},
    {"id": "ultimate", "name": "Ultimate", "credits": 3000, "price": 169.9, "currency": "CNY", "price_id": ""},
]

# (category, key, value, value_type, label, description, is_secret)
DEFAULT_CONFIGS = [
    ("ai", "glm_api_key", "", "string", "GLM API Key", "Key for the text organizer model", True),
    ("ai", "glm_base_url", "https://open.bigmodel.cn/api/paas/v4", "string", "GLM Base URL", None, False),
    ("ai", "glm_model", "glm-4-flash", "string", "GLM Model", None, False),
    ("ai", "glm_temperature", "0.7", "number", "Temperature", None, False),
    ("ai", "glm_max_tokens", "4096", "number", "Max tokens", None, False),

    ("credits", "new_user_credits", "100", "number", "New user gift", "Credits granted on sign up", False),
    ("credits", "credits_analysis", "1", "number", "Analysis cost", "Credits per text analysis", False),
    ("credits", "credits_image", "5", "number", "Image cost", "Credits per generated card", False),
    ("credits", "credits_expiration_days", "30", "number", "Expiration (days)", "Validity of purchased credits", False),
    ("credits", "invite_reward", "50", "number", "Invite reward", None, False),

    ("pricing", "packages", json.dumps(DEFAULT_PACKAGES), "json", "Credit packages", None, False),
    ("pricing", "subscription_credits", "{}", "json", "Subscription credits", "price_id -> credits per period", False),

    ("limits", "max_input_length", "10000", "number", "Max input length", None, False),
    ("limits", "min_input_length", "10", "number", "Min input length", None, False),
    ("limits", "max_sections_per_card", "4", "number", "Max sections per card", None, False),
    ("limits", "compact_mode_max_cards", "1", "number", "Compact mode cards", None, False),
    ("limits", "daily_generation_limit", "50", "number", "Daily generations", None, False),

    ("features", "maintenance_mode", "false", "boolean", "Maintenance mode", None, False),
    ("features", "registration_enabled", "true", "boolean", "Registration", None, False),
    ("features", "payment_enabled", "true", "boolean", "Payments", None, False),
    ("features", "invite_enabled", "true", "boolean", "Invites", None, False),
    ("features", "plaza_enabled", "true", "boolean", "Plaza", None, False),

    ("site", "site_name", "NoteDraw", "string", "Site name", None, False),
    ("site", "support_email", "support@notedraw.com", "string", "Support e-mail", None, False),
    ("site", "announcement", "", "string", "Announcement", None, False),
    ("site", "footer_icp", "", "string", "Footer ICP", None, False),
]


def init_default_configs(updated_by: int | None = None) -> int:
    """Insere apenas os pares (categoria, chave) ausentes. Retorna quantos entraram."""
    existing = {
        (c, k) for c, k in db.session.execute(select(SystemConfig.category, SystemConfig.key)).all()
    }
    added = 0
    for category, key, value, value_type, label, description, is_secret in DEFAULT_CONFIGS:
        if (category, key) in existing:
            continue
        db.session.add(SystemConfig(
            category=category, key=key, value=value, value_type=value_type,
            label=label, description=description, is_secret=is_secret,
            updated_by=updated_by,
        ))
        added += 1
    if added:
        db.session.commit()
    return added
