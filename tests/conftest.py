# tests/conftest.py
# -*- coding: utf-8 -*-
import os
import sys
import uuid
import pathlib
import importlib
import tempfile

import pytest


# =====================================================================================
# Localização do projeto (garante que "notedraw_app" esteja no sys.path)
# =====================================================================================
def _add_project_root():
    here = pathlib.Path(__file__).resolve()
    for base in [here.parent, here.parent.parent, pathlib.Path.cwd()]:
        for candidate in [base, *base.parents]:
            if (candidate / "notedraw_app").is_dir():
                if str(candidate) not in sys.path:
                    sys.path.insert(0, str(candidate))
                return candidate
    env_root = os.getenv("PROJECT_ROOT")
    if env_root and os.path.isdir(env_root):
        if env_root not in sys.path:
            sys.path.insert(0, env_root)
        return pathlib.Path(env_root)
    return None


PROJECT_ROOT = _add_project_root()


# =====================================================================================
# Ambiente de testes unitários (sem serviços externos)
# =====================================================================================
@pytest.fixture(autouse=True, scope="session")
def _testing_env():
    os.environ["APP_ENV"] = "testing"
    os.environ["FLASK_ENV"] = "testing"
    os.environ["TESTING"] = "1"
    os.environ["DISABLE_SCHEDULER"] = "1"
    os.environ.setdefault("SECRET_KEY", "testing-secret")
    yield


def _import(modpath, name=None):
    mod = importlib.import_module(modpath)
    return getattr(mod, name) if name else mod


# =====================================================================================
# App Flask com SQLite temporário e schema criado uma vez por sessão
# =====================================================================================
@pytest.fixture(scope="session")
def app(_testing_env):
    fd, db_path = tempfile.mkstemp(prefix="notedraw_test_", suffix=".sqlite")
    os.close(fd)

    # URI com flags para reduzir locks
    os.environ["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{db_path}?check_same_thread=0&timeout=30"
    os.environ["DATABASE_URL"] = os.environ["SQLALCHEMY_DATABASE_URI"]

    create_app = _import("notedraw_app", "create_app")
    app = create_app()

    from notedraw_app.extensions import db
    from sqlalchemy import event

    # PRAGMAs sempre que o engine abrir uma conexão
    def _set_sqlite_pragmas(dbapi_conn, _conn_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=30000")
        cursor.close()

    with app.app_context():
        if db.engine.url.get_backend_name() == "sqlite":
            event.listen(db.engine, "connect", _set_sqlite_pragmas)
        db.create_all()

    yield app

    # teardown
    with app.app_context():
        db.session.remove()
    try:
        os.remove(db_path)
    except OSError:
        pass


# =====================================================================================
# Estado em memória zerado entre testes (cache de config e rate limiters)
# =====================================================================================
@pytest.fixture(autouse=True)
def _reset_memory_state(app):
    from notedraw_app.services.config_cache import clear_config_cache
    from notedraw_app.services.api_protection import reset_limiters
    clear_config_cache()
    reset_limiters()
    yield
    clear_config_cache()
    reset_limiters()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    from notedraw_app.extensions import db
    with app.app_context():
        try:
            yield db.session
        finally:
            db.session.rollback()
            db.session.close()


# =====================================================================================
# Mocks de serviços externos
#   - Stripe (Checkout, Portal, Customer)
#   - requests.get/post (sem rede)
# =====================================================================================
class _Resp:
    def __init__(self, status_code=200, json_data=None, text="OK", headers=None):
        self.status_code = status_code
        self._json = json_data or {}
        self.text = text
        self.headers = headers or {}

    def json(self):
        return self._json


@pytest.fixture
def fake_response():
    return _Resp


@pytest.fixture(autouse=True)
def _mock_externals(monkeypatch):
    import stripe
    import requests

    class _StripeObj:
        def __init__(self, **k):
            self.__dict__.update(k)

        def get(self, k, d=None):
            return getattr(self, k, d)

    monkeypatch.setattr(
        stripe.checkout.Session, "create",
        staticmethod(lambda **k: _StripeObj(id="cs_test_123", url="https://stripe.example/checkout/session/test_123")),
        raising=False,
    )
    monkeypatch.setattr(
        stripe.billing_portal.Session, "create",
        staticmethod(lambda **k: _StripeObj(url="https://stripe.example/portal/session/test_123")),
        raising=False,
    )
    monkeypatch.setattr(
        stripe.Customer, "create",
        staticmethod(lambda **k: _StripeObj(id="cus_test_123", email=k.get("email"))),
        raising=False,
    )

    monkeypatch.setattr(requests, "get", lambda *a, **k: _Resp(), raising=False)
    monkeypatch.setattr(requests, "post", lambda *a, **k: _Resp(), raising=False)
    yield


# =====================================================================================
# Configuração de sistema temporária (linha removida/restaurada no teardown)
# =====================================================================================
@pytest.fixture
def set_config(app):
    from notedraw_app.extensions import db
    from notedraw_app.models import SystemConfig
    from notedraw_app.services.config_cache import clear_config_cache

    touched = []

    def _set(category, key, value):
        with app.app_context():
            row = SystemConfig.query.filter_by(category=category, key=key).first()
            if row is None:
                row = SystemConfig(category=category, key=key, value=value)
                db.session.add(row)
                touched.append((category, key, None))
            else:
                touched.append((category, key, row.value))
                row.value = value
            db.session.commit()
        clear_config_cache()

    yield _set

    with app.app_context():
        for category, key, old in reversed(touched):
            row = SystemConfig.query.filter_by(category=category, key=key).first()
            if row is None:
                continue
            if old is None:
                db.session.delete(row)
            else:
                row.value = old
        db.session.commit()
    clear_config_cache()


# =====================================================================================
# Usuários e clientes logados
# =====================================================================================
@pytest.fixture
def user_admin(db_session):
    from notedraw_app.models.user import User
    email = f"admin+{uuid.uuid4().hex[:6]}@test.com"
    u = User(name="Admin", email=email, is_admin=True)
    u.set_password("secret123")
    db_session.add(u)
    db_session.commit()
    return u


@pytest.fixture
def user_normal(db_session):
    from notedraw_app.models.user import User
    email = f"user+{uuid.uuid4().hex[:6]}@test.com"
    u = User(name="User", email=email)
    u.set_password("secret123")
    db_session.add(u)
    db_session.commit()
    return u


@pytest.fixture
def logged_client_admin(client, user_admin):
    with client.session_transaction() as sess:
        sess["user"] = {"id": user_admin.id, "email": user_admin.email, "is_admin": True}
    return client


@pytest.fixture
def logged_client_user(client, user_normal):
    with client.session_transaction() as sess:
        sess["user"] = {"id": user_normal.id, "email": user_normal.email, "is_admin": False}
    return client


@pytest.fixture
def fund(app):
    """Concede créditos a um usuário: fund(user_id, amount)."""
    from notedraw_app.models import CreditType
    from notedraw_app.services.credits import add_credits

    def _fund(user_id, amount):
        with app.app_context():
            add_credits(user_id, amount, CreditType.ADMIN_ADD, "test funding")
    return _fund
