# notedraw_app/__init__.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import os
from datetime import datetime

from flask import Flask, request, session, jsonify, render_template
from config import Config, TestingConfig, StagingConfig, ProductionConfig
from .extensions import db, bcrypt, migrate, scheduler, init_extensions, init_scheduler, register_cli
from .blueprints.admin import admin_bp
from .blueprints.core import bp as core_bp
from .blueprints.auth import bp as auth_bp
from .blueprints.billing import bp as billing_bp, webhooks_bp
from .blueprints.notedraw import bp as notedraw_bp
from .blueprints.plaza import bp as plaza_bp
from .blueprints.redemption import bp as redemption_bp
from .services.config_cache import is_maintenance_mode

# endpoints que continuam no ar durante manutenção
MAINTENANCE_EXEMPT = ("static", "auth.login", "auth.logout")
MAINTENANCE_EXEMPT_BLUEPRINTS = ("admin_bp", "webhooks")


def create_app(config_object: type[Config] = Config) -> Flask:
    app = Flask(__name__, template_folder="../templates", static_folder="../static")
    app_env = os.getenv("APP_ENV", "").lower()

    if app_env == "testing":
        app.config.from_object(TestingConfig)
        # o banco temporário pode ter sido definido depois do import do config
        if os.getenv("SQLALCHEMY_DATABASE_URI"):
            app.config["SQLALCHEMY_DATABASE_URI"] = os.environ["SQLALCHEMY_DATABASE_URI"]
    elif app_env == "staging":
        app.config.from_object(StagingConfig)
    elif app_env == "production":
        app.config.from_object(ProductionConfig)
    else:
        app.config.from_object(config_object)

    # Extensões (DB/Bcrypt/Migrate/Scheduler)
    init_extensions(app)
    app.config["STARTED_AT"] = datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S UTC")

    # Blueprints
    app.register_blueprint(core_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp, url_prefix="/admin")
    app.register_blueprint(billing_bp)
    app.register_blueprint(webhooks_bp)
    app.register_blueprint(notedraw_bp)
    app.register_blueprint(plaza_bp)
    app.register_blueprint(redemption_bp)
    # CLI (ex.: flask init-db)
    register_cli(app)

    # Scheduler (diário: expiração de créditos)
    if not app.config.get("TESTING") and os.getenv("DISABLE_SCHEDULER") != "1":
        init_scheduler(app)
        if not scheduler.running:
            scheduler.start()

    @app.before_request
    def maintenance_gate():
        if request.endpoint is None or request.endpoint in MAINTENANCE_EXEMPT:
            return None
        if request.blueprint in MAINTENANCE_EXEMPT_BLUEPRINTS:
            return None
        if (session.get("user") or {}).get("is_admin"):
            return None
        if not is_maintenance_mode():
            return None
        if request.is_json or request.accept_mimetypes.best == "application/json":
            return jsonify(success=False, error="Service under maintenance"), 503
        return render_template("maintenance.html"), 503

    @app.template_filter("datetimeformat")
    def datetimeformat(value, fmt="%Y-%m-%d %H:%M"):
        if value is None:
            return ""
        if isinstance(value, (int, float)):
            value = datetime.utcfromtimestamp(int(value))
        return value.strftime(fmt)

    return app
