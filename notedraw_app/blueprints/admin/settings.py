# notedraw_app/blueprints/admin/settings.py
# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import request, jsonify, session, current_app

from ..admin import admin_bp
from ...decorators import api_admin_required
from ...extensions import db
from ...models import SystemConfig
from ...models.system_config import CONFIG_CATEGORIES
from ...services.config_cache import clear_config_cache
from ...services.system_defaults import init_default_configs


def mask_secret(value: str | None) -> str:
    if not value:
        return ""
    if len(value) <= 8:
        return "********"
    return f"{value[:4]}****{value[-4:]}"


def _row_dict(c: SystemConfig) -> dict:
    return {
        "id": c.id,
        "category": c.category,
        "key": c.key,
        "value": mask_secret(c.value) if c.is_secret else c.value,
        "valueType": c.value_type,
        "label": c.label,
        "description": c.description,
        "isSecret": bool(c.is_secret),
        "updatedAt": c.updated_at.isoformat() if c.updated_at else None,
    }


def _admin_id() -> int | None:
    return (session.get("user") or {}).get("id")


def _apply(c: SystemConfig, value) -> bool:
    value = "" if value is None else str(value)
    # valor mascarado voltando do formulário não sobrescreve o segredo
    if c.is_secret and value and value == mask_secret(c.value):
        return False
    c.value = value
    c.updated_by = _admin_id()
    return True


@admin_bp.route("/config")
@api_admin_required
def list_config():
    q = SystemConfig.query
    category = request.args.get("category")
    if category:
        if category not in CONFIG_CATEGORIES:
            return jsonify(success=False, error="Invalid category"), 400
        q = q.filter(SystemConfig.category == category)
    rows = q.order_by(SystemConfig.category.asc(), SystemConfig.key.asc()).all()
    grouped: dict[str, list] = {}
    for c in rows:
        grouped.setdefault(c.category, []).append(_row_dict(c))
    return jsonify(success=True, data=grouped, categories=list(CONFIG_CATEGORIES))


@admin_bp.route("/config/<int:config_id>", methods=["POST"])
@api_admin_required
def update_config(config_id: int):
    c = db.session.get(SystemConfig, config_id)
    if not c:
        return jsonify(success=False, error="Config not found"), 404
    data = request.get_json(silent=True) or request.form
    if "value" not in data:
        return jsonify(success=False, error="Missing value"), 400
    _apply(c, data.get("value"))
    db.session.commit()
    clear_config_cache()
    current_app.logger.info("Config %s.%s updated by admin %s", c.category, c.key, _admin_id())
    return jsonify(success=True, config=_row_dict(c))


@admin_bp.route("/config", methods=["POST"])
@api_admin_required
def update_configs():
    data = request.get_json(silent=True) or {}
    items = data.get("configs") if isinstance(data, dict) else None
    if not isinstance(items, list) or not items:
        return jsonify(success=False, error="Missing configs"), 400
    updated = 0
    for item in items:
        if not isinstance(item, dict):
            continue
        c = None
        if item.get("id"):
            try:
                config_id = int(item["id"])
            except (TypeError, ValueError):
                db.session.rollback()
                return jsonify(success=False, error=f"Invalid config id: {item['id']!r}"), 400
            c = db.session.get(SystemConfig, config_id)
        elif item.get("category") and item.get("key"):
            c = SystemConfig.query.filter_by(category=item["category"], key=item["key"]).first()
        if c and _apply(c, item.get("value")):
            updated += 1
    db.session.commit()
    clear_config_cache()
    return jsonify(success=True, updated=updated)


@admin_bp.route("/config/init", methods=["POST"])
@api_admin_required
def init_config():
    added = init_default_configs(updated_by=_admin_id())
    clear_config_cache()
    return jsonify(success=True, added=added)
