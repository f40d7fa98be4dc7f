# notedraw_app/blueprints/notedraw.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import json
from datetime import datetime, time as dtime
from pathlib import Path

from flask import Blueprint, request, jsonify, current_app, render_template, abort
from werkzeug.utils import secure_filename

from notedraw_app import ai
from notedraw_app.decorators import api_login_required, login_required
from notedraw_app.extensions import db
from notedraw_app.models import NoteProject, NoteCard
from notedraw_app.models.note import LANGUAGES, VISUAL_STYLES, GENERATE_MODES
from notedraw_app.blueprints.auth import current_user
from notedraw_app.services.api_protection import protect_api, charge
from notedraw_app.services.credits import has_enough_credits
from notedraw_app.services.config_cache import (
    get_credits_for_analysis, get_credits_for_image, get_config_int,
)
from notedraw_app.services.text_extract import fetch_url_text, decode_upload, FetchError

bp = Blueprint("notedraw", __name__, url_prefix="/notedraw")

ALLOWED_UPLOADS = {".txt", ".md", ".markdown"}
MAX_SIGNATURE = 50
MAX_CUSTOM_PROMPT = 2000


def _payload() -> dict:
    return request.get_json(silent=True) or request.form.to_dict()


def _bad(message: str, status: int = 400):
    return jsonify(success=False, error=message), status


def _own_project(project_id: int) -> NoteProject | None:
    p = db.session.get(NoteProject, project_id)
    u = current_user()
    if not p or not u or p.user_id != u.id:
        return None
    return p


def _own_card(card_id: int) -> NoteCard | None:
    card = db.session.get(NoteCard, card_id)
    if not card or not _own_project(card.project_id):
        return None
    return card


def _generations_today(user_id: int) -> int:
    start = datetime.combine(datetime.utcnow().date(), dtime.min)
    return NoteProject.query.filter(
        NoteProject.user_id == user_id,
        NoteProject.created_at >= start,
        NoteProject.status != "draft",
    ).count()


@bp.route("/")
@login_required
def workbench():
    return render_template("notedraw.html", styles=ai.all_styles(), limits=current_app.config["TEXT_LIMITS"])


@bp.route("/projects", methods=["POST"])
@api_login_required
def create_project():
    data = _payload()
    limits = current_app.config["TEXT_LIMITS"]
    text = (data.get("input_text") or data.get("inputText") or "").strip()
    language = data.get("language") or "en"
    style = data.get("visual_style") or data.get("visualStyle") or "sketch"
    mode = data.get("generate_mode") or data.get("generateMode") or "detailed"
    signature = (data.get("signature") or "").strip() or None

    max_len = get_config_int("limits", "max_input_length", limits["MAX_INPUT_LENGTH"])
    min_len = get_config_int("limits", "min_input_length", limits["MIN_INPUT_LENGTH"])
    if len(text) < min_len:
        return _bad(f"Text too short. At least {min_len} characters are required.")
    if len(text) > max_len:
        return _bad(f"Text too long. Maximum {max_len} characters allowed.")
    if language not in LANGUAGES:
        return _bad("Invalid language.")
    if style not in VISUAL_STYLES:
        return _bad("Invalid visual style.")
    if mode not in GENERATE_MODES:
        return _bad("Invalid generate mode.")
    if signature and len(signature) > MAX_SIGNATURE:
        return _bad(f"Signature must be at most {MAX_SIGNATURE} characters.")

    u = current_user()
    p = NoteProject(user_id=u.id, input_text=text, language=language, visual_style=style,
                    generate_mode=mode, signature=signature, status="draft")
    db.session.add(p)
    db.session.commit()
    return jsonify(success=True, projectId=p.id), 201


@bp.route("/projects/<int:project_id>/generate", methods=["POST"])
@api_login_required
def generate_project(project_id: int):
    p = _own_project(project_id)
    if not p:
        return _bad("Project not found", 404)
    if p.status == "processing":
        return _bad("Project is already being generated", 409)

    cost_analysis = get_credits_for_analysis()
    cost_image = get_credits_for_image()
    guard = protect_api("generate_image", required_credits=cost_analysis + cost_image)
    if not guard.ok:
        return guard.response

    daily_limit = get_config_int("limits", "daily_generation_limit", 50)
    if not guard.is_test_account and daily_limit > 0 and _generations_today(p.user_id) >= daily_limit:
        return _bad("Daily generation limit reached", 429)

    p.status = "processing"
    p.error_message = None
    db.session.commit()

    def _can_paint(completed: int) -> bool:
        # saldo precisa cobrir a análise e todas as imagens até esta
        if guard.is_test_account:
            return True
        return has_enough_credits(p.user_id, cost_analysis + cost_image * (completed + 1))

    try:
        units = ai.generate(p.input_text, p.language, p.visual_style, p.generate_mode, p.signature,
                            can_paint=_can_paint)
    except ai.OrganizerError as e:
        current_app.logger.warning("Organizer failed for project %s: %s", p.id, e)
        p.status = "failed"
        p.error_message = str(e)
        db.session.commit()
        return _bad(str(e), 502)
    except Exception:
        current_app.logger.exception("Generation failed for project %s", p.id)
        db.session.rollback()
        p.status = "failed"
        p.error_message = "Generation failed"
        db.session.commit()
        return _bad("Generation failed", 500)

    charge(guard, cost_analysis, f"NoteDraw: analysis for project #{p.id}")

    for old in list(p.cards):
        db.session.delete(old)
    db.session.flush()

    completed = 0
    for unit in units:
        db.session.add(NoteCard(
            project_id=p.id,
            order=unit.order,
            original_text=unit.original_text,
            structure=json.dumps(unit.structure.to_dict(), ensure_ascii=False) if unit.structure else None,
            prompt=unit.prompt,
            image_url=unit.image_url,
            status=unit.status,
            error_message=unit.error_message,
        ))
        if unit.status == "completed":
            completed += 1

    if not p.title and units and units[0].structure:
        p.title = units[0].structure.title[:200]
    p.status = "completed" if units and completed == len(units) else "failed"
    if p.status == "failed":
        p.error_message = next((u.error_message for u in units if u.error_message), "Some cards failed")
    db.session.commit()

    for unit in units:
        if unit.status == "completed":
            charge(guard, cost_image, f"NoteDraw: image {unit.order + 1} for project #{p.id}")

    db.session.refresh(p)
    return jsonify(success=p.status == "completed", project=p.to_dict(with_cards=True))


@bp.route("/cards/<int:card_id>/regenerate", methods=["POST"])
@api_login_required
def regenerate_card(card_id: int):
    card = _own_card(card_id)
    if not card:
        return _bad("Card not found", 404)
    structure = card.structure_dict()
    if not structure:
        return _bad("Card has no structure data")

    cost = get_credits_for_image()
    guard = protect_api("generate_image", required_credits=cost)
    if not guard.ok:
        return guard.response

    project = card.project
    card.status = "generating"
    db.session.commit()
    unit = ai.regenerate_unit(ai.CardStructure.from_dict(structure), project.visual_style,
                              project.signature, order=card.order, original_text=card.original_text or "")
    card.prompt = unit.prompt
    card.status = unit.status
    card.error_message = unit.error_message
    if unit.image_url:
        card.image_url = unit.image_url
    _refresh_project_status(project)
    db.session.commit()

    if unit.status == "completed":
        charge(guard, cost, f"NoteDraw: regenerate card #{card.id}")
    return jsonify(success=True, card=card.to_dict())


@bp.route("/cards/<int:card_id>/regenerate-prompt", methods=["POST"])
@api_login_required
def regenerate_with_prompt(card_id: int):
    card = _own_card(card_id)
    if not card:
        return _bad("Card not found", 404)
    prompt = (_payload().get("prompt") or _payload().get("customPrompt") or "").strip()
    if not prompt or len(prompt) > MAX_CUSTOM_PROMPT:
        return _bad(f"Prompt must have between 1 and {MAX_CUSTOM_PROMPT} characters.")

    cost = get_credits_for_image()
    guard = protect_api("generate_image", required_credits=cost)
    if not guard.ok:
        return guard.response

    structure = card.structure_dict() or {}
    result = ai.paint_custom_prompt(prompt, title=structure.get("title") or "Visual Note")
    card.prompt = prompt
    card.status = "completed" if result.success else "failed"
    card.error_message = result.error_message
    if result.image_url:
        card.image_url = result.image_url
    _refresh_project_status(card.project)
    db.session.commit()

    if result.success:
        charge(guard, cost, f"NoteDraw: custom prompt for card #{card.id}")
    return jsonify(success=True, card=card.to_dict())


def _refresh_project_status(project: NoteProject) -> None:
    cards = list(project.cards)
    if cards and all(c.status == "completed" for c in cards):
        project.status = "completed"
        project.error_message = None
    elif any(c.status == "failed" for c in cards):
        project.status = "failed"


@bp.route("/projects/<int:project_id>", methods=["GET"])
@api_login_required
def get_project(project_id: int):
    p = _own_project(project_id)
    if not p:
        return _bad("Project not found", 404)
    return jsonify(success=True, project=p.to_dict(with_cards=True))


@bp.route("/projects/<int:project_id>/view")
@login_required
def project_page(project_id: int):
    p = _own_project(project_id)
    if not p:
        abort(404)
    return render_template("project_detail.html", project=p)


@bp.route("/projects", methods=["GET"])
@api_login_required
def list_projects():
    u = current_user()
    limit = min(max(request.args.get("limit", 20, type=int), 1), 100)
    offset = max(request.args.get("offset", 0, type=int), 0)
    q = NoteProject.query.filter_by(user_id=u.id).order_by(NoteProject.created_at.desc())
    total = q.count()
    items = q.offset(offset).limit(limit).all()
    return jsonify(success=True, total=total, projects=[p.to_dict() for p in items])


@bp.route("/projects/<int:project_id>", methods=["DELETE"])
@api_login_required
def delete_project(project_id: int):
    p = _own_project(project_id)
    if not p:
        return _bad("Project not found", 404)
    db.session.delete(p)
    db.session.commit()
    return jsonify(success=True)


@bp.route("/fetch-url", methods=["POST"])
@api_login_required
def fetch_url():
    url = (_payload().get("url") or "").strip()
    if not url:
        return _bad("Missing url")
    limits = current_app.config["TEXT_LIMITS"]
    try:
        text = fetch_url_text(url, limits["MAX_URL_CONTENT_LENGTH"], limits["MIN_INPUT_LENGTH"])
    except FetchError as e:
        return _bad(str(e))
    return jsonify(success=True, content=text, length=len(text))


@bp.route("/upload", methods=["POST"])
@api_login_required
def upload_text():
    f = request.files.get("file")
    if not f or not f.filename:
        return _bad("No file uploaded")
    ext = Path(secure_filename(f.filename)).suffix.lower()
    if ext not in ALLOWED_UPLOADS:
        return _bad("Only .txt and .md files are supported")
    limits = current_app.config["TEXT_LIMITS"]
    text = decode_upload(f.read()).strip()
    if len(text) > limits["MAX_INPUT_LENGTH"]:
        text = text[: limits["MAX_INPUT_LENGTH"]]
    if len(text) < limits["MIN_INPUT_LENGTH"]:
        return _bad(f"Content too short. At least {limits['MIN_INPUT_LENGTH']} characters are required.")
    return jsonify(success=True, content=text, length=len(text))
