# notedraw_app/blueprints/core.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from xml.sax.saxutils import escape

from flask import Blueprint, render_template, current_app, Response, url_for

from notedraw_app.decorators import login_required
from notedraw_app.models import NoteProject
from notedraw_app.ai import all_styles
from notedraw_app.blueprints.auth import current_user
from notedraw_app.services.config_cache import get_config_json, get_config
from notedraw_app.services.credits import get_user_credits
from notedraw_app.services.system_defaults import DEFAULT_PACKAGES

bp = Blueprint("core", __name__)


@bp.route("/")
def index():
    featured = NoteProject.query \
        .filter_by(is_public=True, status="completed") \
        .order_by(NoteProject.is_featured.desc(), NoteProject.published_at.desc()) \
        .limit(8).all()
    packages = get_config_json("pricing", "packages", DEFAULT_PACKAGES)
    return render_template(
        "landing.html",
        featured=featured,
        packages=packages,
        styles=all_styles(),
        announcement=get_config("site", "announcement") or "",
    )


@bp.route("/dashboard")
@login_required
def dashboard():
    u = current_user()
    projects = NoteProject.query.filter_by(user_id=u.id) \
        .order_by(NoteProject.created_at.desc()).limit(10).all() if u else []
    limits = current_app.config["TEXT_LIMITS"]
    return render_template(
        "dashboard.html",
        user=u,
        credits=get_user_credits(u.id) if u else 0,
        projects=projects,
        styles=all_styles(),
        limits=limits,
    )


@bp.route("/sitemap.xml")
def sitemap():
    base = current_app.config.get("SITE_URL", "").rstrip("/")
    urls = [(base + url_for("core.index"), None), (base + url_for("plaza.plaza_list"), None)]
    notes = NoteProject.query.filter_by(is_public=True, status="completed") \
        .order_by(NoteProject.published_at.desc()).limit(1000).all()
    for n in notes:
        if n.slug:
            lastmod = (n.updated_at or n.published_at)
            urls.append((base + url_for("plaza.note_detail", slug=n.slug),
                         lastmod.strftime("%Y-%m-%d") if lastmod else None))

    lines = ['<?xml version="1.0" encoding="UTF-8"?>',
             '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">']
    for loc, lastmod in urls:
        lines.append("  <url>")
        lines.append(f"    <loc>{escape(loc)}</loc>")
        if lastmod:
            lines.append(f"    <lastmod>{lastmod}</lastmod>")
        lines.append("  </url>")
    lines.append("</urlset>")
    return Response("\n".join(lines), mimetype="application/xml")
