# notedraw_app/extensions.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_migrate import Migrate
from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy import text, select
import click


db = SQLAlchemy()
bcrypt = Bcrypt()
migrate = Migrate()
scheduler = BackgroundScheduler(daemon=True)


def init_extensions(app):
    # DB/Bcrypt/Migrate
    db.init_app(app)
    bcrypt.init_app(app)
    migrate.init_app(app, db)


def init_scheduler(app):
    """Agenda o job diário de expiração de créditos."""
    from .services.credits import process_expired_credits

    def _expire_job():
        with app.app_context():
            try:
                n = process_expired_credits()
                app.logger.info("Credit expiry job processed %s grants", n)
            except Exception:
                app.logger.exception("Credit expiry job failed")

    if not scheduler.get_job("expire-credits"):
        scheduler.add_job(
            _expire_job,
            trigger="cron",
            hour=app.config.get("CREDIT_EXPIRY_HOUR", 3),
            minute=0,
            id="expire-credits",
            replace_existing=True,
        )


def register_cli(app):
    @app.cli.command("init-db")
    def init_db_cmd():
        """Cria as tabelas iniciais (DEV/MVP). Para produção: use flask db upgrade."""
        with app.app_context():
            # sanity check
            db.session.execute(text("SELECT 1"))
            db.create_all()
            print("Tables created.")

    @app.cli.command("seed-config")
    def seed_config_cmd():
        """Insere as configurações padrão que ainda não existem."""
        from .services.system_defaults import init_default_configs
        with app.app_context():
            added = init_default_configs()
            print(f"{added} config entries added.")

    @app.cli.command("create-admin")
    @click.argument("email")
    @click.argument("password")
    @click.option("--name", default="Admin")
    def create_admin_cmd(email, password, name):
        from .models import User
        with app.app_context():
            u = db.session.execute(select(User).where(User.email == email)).scalar_one_or_none()
            if u:
                print("User already exists.")
                return
            u = User(name=name, email=email, is_admin=True)
            u.set_password(password)
            db.session.add(u)
            db.session.commit()
            print(f"Admin {email} created.")

    @app.cli.command("set-admin")
    @click.argument("email")
    @click.option("--revoke", is_flag=True, default=False)
    def set_admin_cmd(email, revoke):
        from .models import User
        with app.app_context():
            u = db.session.execute(select(User).where(User.email == email)).scalar_one_or_none()
            if not u:
                print("User not found.")
                return
            u.is_admin = not revoke
            db.session.commit()
            print(f"{email}: is_admin={u.is_admin}")

    @app.cli.command("list-payments")
    @click.option("--limit", default=20, type=int)
    def list_payments_cmd(limit):
        from .models import Payment
        with app.app_context():
            rows = db.session.execute(
                select(Payment).order_by(Payment.created_at.desc()).limit(limit)
            ).scalars().all()
            for p in rows:
                print(f"{p.id}\t{p.user_id}\t{p.type}\t{p.status}\tpaid={p.paid}\t{p.provider}")
            print(f"{len(rows)} payments.")

    @app.cli.command("expire-credits")
    def expire_credits_cmd():
        """Processa créditos vencidos (mesmo job do scheduler)."""
        from .services.credits import process_expired_credits
        with app.app_context():
            n = process_expired_credits()
            print(f"{n} expired grants processed.")
