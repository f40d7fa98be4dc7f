# notedraw_app/services/config_cache.py
# -*- coding: utf-8 -*-
"""Cache em memória das configurações de sistema (tabela ``system_configs``).

O mapa ``"categoria.chave" -> valor`` é carregado por inteiro na primeira
leitura e servido da memória até o TTL vencer. Não há write-through: quem
grava configuração chama :func:`clear_config_cache` depois.
"""
from __future__ import annotations
import json
import math
import time
from typing import Any

from flask import current_app
from sqlalchemy import select

from ..extensions import db
from ..models.system_config import SystemConfig

CACHE_TTL_SECONDS = 60

_cache: dict[str, str] | None = None
_loaded_at: float = 0.0
_clock = time.monotonic


def _load_all() -> dict[str, str]:
    rows = db.session.execute(select(SystemConfig.category, SystemConfig.key, SystemConfig.value)).all()
    return {f"{cat}.{key}": (value if value is not None else "") for cat, key, value in rows}


def get_all_configs() -> dict[str, str]:
    global _cache, _loaded_at
    now = _clock()
    if _cache is not None and (now - _loaded_at) < CACHE_TTL_SECONDS:
        return _cache
    try:
        fresh = _load_all()
    except Exception:
        # erro de banco: defaults valem, cache não é envenenado
        current_app.logger.exception("Failed to load system configs")
        db.session.rollback()
        return {}
    _cache = fresh
    _loaded_at = now
    return _cache


def clear_config_cache() -> None:
    global _cache, _loaded_at
    _cache = None
    _loaded_at = 0.0


def get_config(category: str, key: str) -> str | None:
    return get_all_configs().get(f"{category}.{key}")


def get_config_number(category: str, key: str, default: float) -> float:
    value = get_config(category, key)
    if value is None or value == "":
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    if not math.isfinite(parsed):
        return default
    return parsed


def get_config_int(category: str, key: str, default: int) -> int:
    return int(get_config_number(category, key, default))


def get_config_boolean(category: str, key: str, default: bool) -> bool:
    value = get_config(category, key)
    if value is None:
        return default
    return value == "true"


def get_config_json(category: str, key: str, default: Any) -> Any:
    value = get_config(category, key)
    if not value:
        return default
    try:
        return json.loads(value)
    except ValueError:
        return default


# atalhos usados pelas views
def get_credits_for_analysis() -> int:
    return get_config_int("credits", "credits_analysis", 1)


def get_credits_for_image() -> int:
    return get_config_int("credits", "credits_image", 5)


def get_new_user_credits() -> int:
    return get_config_int("credits", "new_user_credits", 100)


def get_invite_reward() -> int:
    return get_config_int("credits", "invite_reward", 50)


def get_credit_expiration_days() -> int:
    return get_config_int("credits", "credits_expiration_days", 30)


def is_feature_enabled(feature: str) -> bool:
    return get_config_boolean("features", feature, True)


def is_maintenance_mode() -> bool:
    return get_config_boolean("features", "maintenance_mode", False)
