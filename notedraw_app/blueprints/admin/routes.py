# notedraw_app/blueprints/admin/routes.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import os
import platform
import socket
from datetime import datetime, timedelta, time as dtime

from flask import render_template, request, jsonify, current_app
from sqlalchemy import text, func

from ..admin import admin_bp
from ...decorators import admin_required, api_admin_required
from ...extensions import db
from ...models import User, NoteProject, NoteCard, RedemptionCode


def _today_start() -> datetime:
    return datetime.combine(datetime.utcnow().date(), dtime.min)


def _system_snapshot():
    try:
        db.session.execute(text("SELECT 1"))
        db_ok, db_detail = True, "Connection OK"
    except Exception as e:
        db_ok, db_detail = False, str(e)

    provider = current_app.config.get("PAYMENT_PROVIDER", "creem")
    key = current_app.config.get("CREEM_API_KEY") if provider == "creem" else current_app.config.get("STRIPE_SECRET_KEY")
    statuses = [
        dict(name="Database", ok=db_ok, detail=db_detail),
        dict(name=f"Payments ({provider})", ok=bool(key), detail="Key configured" if key else "Key missing"),
        dict(name="Organizer (GLM)", ok=bool(current_app.config.get("GLM_API_KEY")), detail=current_app.config.get("GLM_MODEL")),
    ]
    server = dict(
        hostname=socket.gethostname(),
        os=f"{platform.system()} {platform.release()}",
        python=platform.python_version(),
        started_at=current_app.config.get("STARTED_AT"),
        pid=os.getpid(),
    )
    return statuses, server


def dashboard_stats() -> dict:
    today = _today_start()
    public_q = NoteProject.query.filter(NoteProject.is_public.is_(True))
    stats = {
        "totalUsers": User.query.count(),
        "totalProjects": NoteProject.query.count(),
        "publicProjects": public_q.count(),
        "totalCards": NoteCard.query.count(),
        "totalCodes": RedemptionCode.query.count(),
        "usedCodes": RedemptionCode.query.filter(RedemptionCode.used_count > 0).count(),
        "todayUsers": User.query.filter(User.created_at >= today).count(),
        "todayProjects": NoteProject.query.filter(NoteProject.created_at >= today).count(),
    }

    trend = []
    for i in range(6, -1, -1):
        start = today - timedelta(days=i)
        end = start + timedelta(days=1)
        n = NoteProject.query.filter(NoteProject.created_at >= start, NoteProject.created_at < end).count()
        trend.append({"date": start.strftime("%Y-%m-%d"), "count": n})

    styles = db.session.query(NoteProject.visual_style, func.count(NoteProject.id)) \
        .group_by(NoteProject.visual_style).all()
    stats["recentProjects"] = trend
    stats["styleDistribution"] = [{"style": s or "unknown", "count": c} for s, c in styles]
    return stats


# ---------------- ADMIN: Painel ----------------
@admin_bp.route("/")
@admin_required
def admin():
    sys_status, server_info = _system_snapshot()
    return render_template("admin_panel.html", stats=dashboard_stats(),
                           sys_status=sys_status, server_info=server_info)


@admin_bp.route("/stats")
@api_admin_required
def admin_stats():
    return jsonify(success=True, data=dashboard_stats())


# ---------------- ADMIN: Moderação ----------------
@admin_bp.route("/review")
@api_admin_required
def pending_review():
    page = max(request.args.get("page", 1, type=int), 1)
    limit = min(max(request.args.get("limit", 20, type=int), 1), 100)
    status = request.args.get("status")
    q = NoteProject.query
    if status == "public":
        q = q.filter(NoteProject.is_public.is_(True))
    elif status == "featured":
        q = q.filter(NoteProject.is_featured.is_(True))
    elif status == "private":
        q = q.filter(NoteProject.is_public.is_(False))
    else:
        # públicos ainda não destacados aguardam revisão
        q = q.filter(NoteProject.is_public.is_(True), NoteProject.is_featured.is_(False))
    total = q.count()
    rows = q.order_by(NoteProject.published_at.desc(), NoteProject.created_at.desc()) \
        .offset((page - 1) * limit).limit(limit).all()
    return jsonify(success=True, items=[p.to_dict() for p in rows], total=total, page=page, limit=limit)


@admin_bp.route("/projects/<int:project_id>/public", methods=["POST"])
@api_admin_required
def set_project_public(project_id: int):
    p = db.session.get(NoteProject, project_id)
    if not p:
        return jsonify(success=False, error="Project not found"), 404
    data = request.get_json(silent=True) or request.form
    is_public = str(data.get("is_public", "true")).lower() in ("1", "true", "on", "yes")
    p.is_public = is_public
    if is_public and not p.published_at:
        p.published_at = datetime.utcnow()
    if is_public and not p.slug:
        from ..plaza import generate_slug
        p.slug = generate_slug(p.title or "note")
    if not is_public:
        p.is_featured = False
    db.session.commit()
    return jsonify(success=True, project=p.to_dict())


@admin_bp.route("/projects/<int:project_id>/featured", methods=["POST"])
@api_admin_required
def set_project_featured(project_id: int):
    p = db.session.get(NoteProject, project_id)
    if not p or not p.is_public:
        return jsonify(success=False, error="Public note not found"), 404
    data = request.get_json(silent=True) or request.form
    p.is_featured = str(data.get("is_featured", "true")).lower() in ("1", "true", "on", "yes")
    db.session.commit()
    return jsonify(success=True, isFeatured=p.is_featured)


@admin_bp.route("/projects/<int:project_id>/remove-from-plaza", methods=["POST"])
@api_admin_required
def remove_from_plaza(project_id: int):
    p = db.session.get(NoteProject, project_id)
    if not p:
        return jsonify(success=False, error="Project not found"), 404
    p.is_public = False
    p.is_featured = False
    db.session.commit()
    return jsonify(success=True)


# ---------------- ADMIN: Usuários ----------------
@admin_bp.route("/users/<int:user_id>/ban", methods=["POST"])
@api_admin_required
def ban_user(user_id: int):
    u = db.session.get(User, user_id)
    if not u:
        return jsonify(success=False, error="User not found"), 404
    data = request.get_json(silent=True) or request.form
    u.banned = str(data.get("banned", "true")).lower() in ("1", "true", "on", "yes")
    db.session.commit()
    return jsonify(success=True, banned=u.banned)


# ---------------- ADMIN: Praça ----------------
@admin_bp.route("/plaza")
@api_admin_required
def plaza_notes():
    page = max(request.args.get("page", 1, type=int), 1)
    limit = min(max(request.args.get("limit", 20, type=int), 1), 100)
    q = NoteProject.query.filter(NoteProject.is_public.is_(True))
    if request.args.get("featured") == "true":
        q = q.filter(NoteProject.is_featured.is_(True))
    total = q.count()
    rows = q.order_by(NoteProject.is_featured.desc(), NoteProject.published_at.desc()) \
        .offset((page - 1) * limit).limit(limit).all()
    items = []
    for p in rows:
        d = p.to_dict()
        d["author"] = p.user.email if p.user else None
        items.append(d)
    return jsonify(success=True, items=items, total=total, page=page, limit=limit)
