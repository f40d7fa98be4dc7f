# notedraw_app/decorators.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from functools import wraps
from flask import session, flash, redirect, url_for, request, jsonify


def login_required(view_func):
    @wraps(view_func)
    def wrapper(*args, **kwargs):
        if not session.get("user"):
            flash("Please sign in to continue.", "warning")
            return redirect(url_for("auth.login", next=request.path))
        return view_func(*args, **kwargs)
    return wrapper


def admin_required(view_func):
    @wraps(view_func)
    def wrapper(*args, **kwargs):
        user = session.get("user")
        if not user:
            flash("Please sign in to continue.", "warning")
            return redirect(url_for("auth.login", next=request.path))
        if not user.get("is_admin"):
            flash("Admin access only.", "danger")
            return redirect(url_for("core.dashboard"))
        return view_func(*args, **kwargs)
    return wrapper


# Variantes JSON para endpoints chamados via fetch()
def api_login_required(view_func):
    @wraps(view_func)
    def wrapper(*args, **kwargs):
        if not session.get("user"):
            return jsonify(success=False, error="Unauthorized"), 401
        return view_func(*args, **kwargs)
    return wrapper


def api_admin_required(view_func):
    @wraps(view_func)
    def wrapper(*args, **kwargs):
        user = session.get("user")
        if not user:
            return jsonify(success=False, error="Unauthorized"), 401
        if not user.get("is_admin"):
            return jsonify(success=False, error="Forbidden"), 403
        return view_func(*args, **kwargs)
    return wrapper
