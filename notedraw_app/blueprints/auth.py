# notedraw_app/blueprints/auth.py
# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, render_template, request, redirect, url_for, flash, session, current_app

from notedraw_app.extensions import db
from notedraw_app.decorators import login_required
from notedraw_app.models import User, CreditType, CreditTransaction
from notedraw_app.services.config_cache import is_feature_enabled, get_new_user_credits
from notedraw_app.services.credits import add_credits, get_user_credits

bp = Blueprint("auth", __name__)


def current_user() -> User | None:
    data = session.get("user")
    if not data:
        return None
    if data.get("id"):
        return db.session.get(User, data["id"])
    email = data.get("email")
    if not email:
        return None
    return User.query.filter_by(email=email).first()


@bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        email = (request.form.get("email") or "").strip().lower()
        pwd = request.form.get("password") or ""

        u = User.query.filter_by(email=email).first()
        if not u or not u.check_password(pwd):
            flash("Invalid credentials.", "danger")
            return redirect(url_for("auth.login"))
        if u.banned:
            flash("This account has been suspended.", "danger")
            return redirect(url_for("auth.login"))

        session["user"] = u.session_dict()
        flash("Signed in.", "success")
        next_url = request.args.get("next") or url_for("core.dashboard")
        return redirect(next_url)
    return render_template("auth_login.html")


@bp.route("/logout")
def logout():
    session.clear()
    flash("You have signed out.", "info")
    return redirect(url_for("core.index"))


@bp.route("/register", methods=["GET", "POST"])
def register():
    if not is_feature_enabled("registration_enabled"):
        flash("Registration is currently closed.", "warning")
        return redirect(url_for("auth.login"))

    if request.method == "POST":
        name = (request.form.get("name") or "").strip() or "User"
        email = (request.form.get("email") or "").strip().lower()
        pwd = request.form.get("password") or ""

        if not email or not pwd:
            flash("E-mail and password are required.", "warning")
            return redirect(url_for("auth.register"))

        if User.query.filter_by(email=email).first():
            flash("E-mail already registered.", "warning")
            return redirect(url_for("auth.register"))

        u = User(name=name, email=email)
        u.set_password(pwd)
        db.session.add(u)
        db.session.commit()

        gift = get_new_user_credits()
        if gift > 0:
            try:
                add_credits(u.id, gift, CreditType.REGISTER_GIFT, "Welcome credits")
            except Exception:
                current_app.logger.exception("Failed to grant welcome credits to %s", u.id)
                db.session.rollback()

        session["user"] = u.session_dict()
        flash("Account created.", "success")
        return redirect(url_for("core.dashboard"))

    return render_template("auth_register.html")


@bp.route("/account")
@login_required
def account():
    u = current_user()
    if not u:
        session.clear()
        return redirect(url_for("auth.login"))
    recent = (CreditTransaction.query
              .filter_by(user_id=u.id)
              .order_by(CreditTransaction.created_at.desc())
              .limit(20).all())
    return render_template("user_account.html", user=u, credits=get_user_credits(u.id), transactions=recent)


@bp.route("/account/update", methods=["POST"])
@login_required
def account_update():
    u = current_user()
    if not u:
        flash("User not found.", "danger")
        return redirect(url_for("auth.account"))

    u.name = request.form.get("name", u.name)
    new_email = (request.form.get("email") or u.email).strip().lower()

    if new_email != u.email and User.query.filter_by(email=new_email).first():
        flash("E-mail already in use by another account.", "warning")
        return redirect(url_for("auth.account"))
    u.email = new_email

    db.session.commit()
    session["user"] = u.session_dict()
    flash("Profile updated.", "success")
    return redirect(url_for("auth.account"))


@bp.route("/account/password", methods=["POST"])
@login_required
def password_change():
    u = current_user()
    if not u:
        flash("User not found.", "danger")
        return redirect(url_for("auth.account"))
    pwd1 = request.form.get("pwd1")
    pwd2 = request.form.get("pwd2")
    if not pwd1 or pwd1 != pwd2:
        flash("Passwords do not match.", "warning")
        return redirect(url_for("auth.account"))
    u.set_password(pwd1)
    db.session.commit()
    flash("Password changed.", "success")
    return redirect(url_for("auth.account"))
