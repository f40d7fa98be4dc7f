# notedraw_app/blueprints/plaza.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import re
import secrets
import string
from collections import Counter
from datetime import datetime

from flask import Blueprint, request, jsonify, render_template, abort

from notedraw_app.decorators import api_login_required
from notedraw_app.extensions import db
from notedraw_app.models import NoteProject
from notedraw_app.models.note import VISUAL_STYLES, LANGUAGES
from notedraw_app.blueprints.auth import current_user
from notedraw_app.services.config_cache import is_feature_enabled

bp = Blueprint("plaza", __name__, url_prefix="/plaza")

_SLUG_CLEAN = re.compile(r"[^a-z0-9一-龥]+")
_ALPHABET = string.ascii_lowercase + string.digits


def generate_slug(title: str) -> str:
    base = _SLUG_CLEAN.sub("-", (title or "").lower()).strip("-")[:30].strip("-")
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(8))
    return f"{base}-{suffix}" if base else suffix


@bp.before_request
def _plaza_enabled():
    if not is_feature_enabled("plaza_enabled"):
        abort(404)


def _public_query(style: str | None = None, language: str | None = None, tag: str | None = None):
    q = NoteProject.query.filter(NoteProject.is_public.is_(True), NoteProject.status == "completed")
    if style and style != "all" and style in VISUAL_STYLES:
        q = q.filter(NoteProject.visual_style == style)
    if language and language != "all" and language in LANGUAGES:
        q = q.filter(NoteProject.language == language)
    if tag:
        q = q.filter(NoteProject.tags.ilike(f"%{tag.strip()}%"))
    return q


def list_public_notes(page: int = 1, limit: int = 20, style: str | None = None,
                      language: str | None = None, tag: str | None = None) -> dict:
    page = max(page, 1)
    limit = min(max(limit, 1), 50)
    q = _public_query(style, language, tag)
    total = q.count()
    rows = q.order_by(
        NoteProject.is_featured.desc(),
        NoteProject.published_at.desc(),
        NoteProject.created_at.desc(),
    ).offset((page - 1) * limit).limit(limit).all()
    return {
        "items": [p.to_dict() for p in rows],
        "pagination": {
            "page": page, "limit": limit, "total": total,
            "totalPages": (total + limit - 1) // limit,
        },
    }


@bp.route("/")
def plaza_list():
    data = list_public_notes(
        page=request.args.get("page", 1, type=int),
        limit=request.args.get("limit", 20, type=int),
        style=request.args.get("style"),
        language=request.args.get("language"),
        tag=request.args.get("tag"),
    )
    if request.args.get("format") == "json" or request.accept_mimetypes.best == "application/json":
        return jsonify(success=True, **data)
    return render_template("plaza.html", **data)


@bp.route("/notes/<slug>")
def note_detail(slug: str):
    p = NoteProject.query.filter_by(slug=slug, is_public=True, status="completed").first()
    if not p:
        abort(404)
    p.views = (p.views or 0) + 1
    db.session.commit()
    data = p.to_dict()
    data["cards"] = [c.to_dict() for c in p.cards if c.status == "completed"]
    data["author"] = p.user.name if p.user else None
    data.pop("inputText", None)
    if request.args.get("format") == "json" or request.accept_mimetypes.best == "application/json":
        return jsonify(success=True, note=data)
    return render_template("plaza_note.html", note=data)


@bp.route("/tags")
def popular_tags():
    counter: Counter = Counter()
    for (tags,) in db.session.query(NoteProject.tags).filter(
        NoteProject.is_public.is_(True), NoteProject.status == "completed", NoteProject.tags.isnot(None)
    ):
        counter.update(t.strip() for t in tags.split(",") if t.strip())
    return jsonify(success=True, tags=[{"tag": t, "count": c} for t, c in counter.most_common(20)])


@bp.route("/share", methods=["POST"])
@api_login_required
def share():
    data = request.get_json(silent=True) or request.form.to_dict()
    project_id = data.get("project_id") or data.get("projectId")
    title = (data.get("title") or "").strip()
    description = (data.get("description") or "").strip()
    tags = (data.get("tags") or "").strip()

    if not title or len(title) > 100:
        return jsonify(success=False, error="Title must have between 1 and 100 characters"), 400
    if len(description) > 500:
        return jsonify(success=False, error="Description too long"), 400
    if len(tags) > 200:
        return jsonify(success=False, error="Tags too long"), 400

    u = current_user()
    p = db.session.get(NoteProject, int(project_id)) if str(project_id or "").isdigit() else None
    if not p or p.user_id != u.id:
        return jsonify(success=False, error="Project not found"), 404
    if p.status != "completed":
        return jsonify(success=False, error="Only completed notes can be shared"), 400
    if p.is_public:
        return jsonify(success=False, error="Note is already public"), 400

    p.slug = generate_slug(title)
    p.title = title
    p.description = description or None
    p.tags = ",".join(t.strip() for t in tags.split(",") if t.strip()) or None
    p.is_public = True
    p.published_at = datetime.utcnow()
    db.session.commit()
    return jsonify(success=True, slug=p.slug)


@bp.route("/<int:project_id>/unshare", methods=["POST"])
@api_login_required
def unshare(project_id: int):
    u = current_user()
    p = db.session.get(NoteProject, project_id)
    if not p or p.user_id != u.id:
        return jsonify(success=False, error="Project not found"), 404
    p.is_public = False
    p.is_featured = False
    db.session.commit()
    return jsonify(success=True)


@bp.route("/<int:project_id>/like", methods=["POST"])
def like(project_id: int):
    p = db.session.get(NoteProject, project_id)
    if not p or not p.is_public:
        return jsonify(success=False, error="Note not found"), 404
    p.likes = (p.likes or 0) + 1
    db.session.commit()
    return jsonify(success=True, likes=p.likes)
