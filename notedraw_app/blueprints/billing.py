# notedraw_app/blueprints/billing.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from flask import Blueprint, request, jsonify, current_app, redirect, url_for, render_template, flash

from ..decorators import login_required, api_login_required
from ..extensions import db
from ..payment import get_payment_provider, PaymentProviderError
from ..services.config_cache import get_config_json, is_feature_enabled
from ..services.payments import check_payment_completion
from ..services.system_defaults import DEFAULT_PACKAGES
from .auth import current_user

bp = Blueprint("billing", __name__, url_prefix="/billing")
webhooks_bp = Blueprint("webhooks", __name__, url_prefix="/api/webhooks")


def _packages() -> list[dict]:
    pkgs = get_config_json("pricing", "packages", DEFAULT_PACKAGES)
    return pkgs if isinstance(pkgs, list) else DEFAULT_PACKAGES


def _find_package(package_id: str) -> dict | None:
    for p in _packages():
        if str(p.get("id")) == str(package_id):
            return p
    return None


@bp.route("/checkout", methods=["GET", "POST"])
@login_required
def checkout():
    """Escolha do pacote de créditos e redirecionamento ao provedor."""
    if request.method == "GET":
        return render_template("checkout.html", packages=_packages())

    if not is_feature_enabled("payment_enabled"):
        flash("Payments are temporarily disabled.", "warning")
        return redirect(url_for("billing.checkout"))

    package = _find_package(request.form.get("package_id", ""))
    if not package:
        flash("Unknown credit package.", "warning")
        return redirect(url_for("billing.checkout"))

    user = current_user()
    cfg = current_app.config
    try:
        result = get_payment_provider().create_credit_checkout(
            package=package,
            customer_email=user.email,
            user_id=user.id,
            success_url=cfg["PAYMENT_SUCCESS_URL"],
            cancel_url=cfg["PAYMENT_CANCEL_URL"],
        )
    except PaymentProviderError as e:
        current_app.logger.warning("Checkout failed: %s", e)
        flash("Could not start checkout. Please try again.", "danger")
        return redirect(url_for("billing.checkout"))
    return redirect(result["url"], code=303)


@bp.route("/subscribe", methods=["POST"])
@login_required
def subscribe():
    """Checkout de assinatura (price_id do provedor)."""
    price_id = (request.form.get("price_id") or "").strip()
    if not price_id:
        flash("Missing price.", "warning")
        return redirect(url_for("billing.checkout"))
    if not is_feature_enabled("payment_enabled"):
        flash("Payments are temporarily disabled.", "warning")
        return redirect(url_for("billing.checkout"))

    user = current_user()
    cfg = current_app.config
    try:
        result = get_payment_provider().create_checkout(
            price_id=price_id,
            customer_email=user.email,
            user_id=user.id,
            success_url=cfg["PAYMENT_SUCCESS_URL"],
            cancel_url=cfg["PAYMENT_CANCEL_URL"],
        )
    except PaymentProviderError as e:
        current_app.logger.warning("Subscription checkout failed: %s", e)
        flash("Could not start checkout. Please try again.", "danger")
        return redirect(url_for("billing.checkout"))
    return redirect(result["url"], code=303)


@bp.route("/portal")
@login_required
def portal():
    """Redireciona ao portal do cliente no provedor."""
    user = current_user()
    if not user or not user.customer_id:
        flash("No billing account found yet.", "warning")
        return redirect(url_for("billing.checkout"))
    try:
        url = get_payment_provider().create_customer_portal(
            customer_id=user.customer_id,
            return_url=url_for("core.dashboard", _external=True),
        )
    except PaymentProviderError:
        current_app.logger.exception("Customer portal failed")
        flash("Billing portal is unavailable.", "danger")
        return redirect(url_for("core.dashboard"))
    return redirect(url, code=303)


@bp.route("/success")
@login_required
def success():
    # a página faz polling em /billing/check-payment até isPaid
    session_id = request.args.get("session_id") or request.args.get("checkout_id") or ""
    return render_template("billing_success.html", session_id=session_id)


@bp.route("/cancel")
@login_required
def cancel():
    flash("Checkout canceled.", "warning")
    return render_template("billing_cancel.html")


@bp.route("/check-payment", methods=["POST"])
@api_login_required
def check_payment():
    data = request.get_json(silent=True) or request.form
    session_id = (data.get("session_id") or data.get("sessionId") or "").strip()
    if not session_id:
        return jsonify(success=False, error="Missing session_id"), 400
    return jsonify(check_payment_completion(session_id))


# -------- Webhooks --------
def _receive_webhook(provider_name: str, signature: str | None, label: str):
    payload = request.get_data()
    if not payload:
        return jsonify(error="Missing webhook payload"), 400
    if not signature:
        return jsonify(error=f"Missing {label} signature"), 400
    try:
        get_payment_provider(provider_name).handle_webhook_event(payload, signature)
    except Exception:
        current_app.logger.exception("%s webhook handler failed", label)
        db.session.rollback()
        return jsonify(error="Webhook handler failed"), 400
    return jsonify(received=True)


@webhooks_bp.route("/creem", methods=["POST"])
def creem_webhook():
    sig = request.headers.get("x-creem-signature") or request.headers.get("creem-signature")
    return _receive_webhook("creem", sig, "Creem")


@webhooks_bp.route("/stripe", methods=["POST"])
def stripe_webhook():
    return _receive_webhook("stripe", request.headers.get("Stripe-Signature"), "Stripe")
