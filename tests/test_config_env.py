# tests/test_config_env.py
import config


def test_env_int_uses_default_for_missing_or_invalid(monkeypatch):
    monkeypatch.delenv("NOTEDRAW_X", raising=False)
    assert config._env_int("NOTEDRAW_X", 7) == 7
    monkeypatch.setenv("NOTEDRAW_X", "   ")
    assert config._env_int("NOTEDRAW_X", 7) == 7
    monkeypatch.setenv("NOTEDRAW_X", "abc")
    assert config._env_int("NOTEDRAW_X", 7) == 7
    monkeypatch.setenv("NOTEDRAW_X", " 42 ")
    assert config._env_int("NOTEDRAW_X", 7) == 42


def test_text_limits_read_environment(monkeypatch):
    monkeypatch.setenv("NOTEDRAW_MAX_INPUT_LENGTH", "5000")
    monkeypatch.setenv("NOTEDRAW_MIN_INPUT_LENGTH", "oops")
    limits = config.text_limits()
    assert limits["MAX_INPUT_LENGTH"] == 5000
    assert limits["MIN_INPUT_LENGTH"] == 10
    assert limits["MAX_URL_CONTENT_LENGTH"] == 10000


def test_card_limits_and_costs_defaults(monkeypatch):
    for name in ("NOTEDRAW_MAX_SECTIONS", "NOTEDRAW_COMPACT_MAX_CARDS",
                 "NOTEDRAW_CREDITS_ANALYSIS", "NOTEDRAW_CREDITS_IMAGE"):
        monkeypatch.delenv(name, raising=False)
    assert config.card_limits() == {"MAX_SECTIONS_PER_CARD": 4, "COMPACT_MODE_MAX_CARDS": 1}
    assert config.credit_costs() == {"ANALYSIS": 1, "IMAGE_GENERATION": 5}


def test_env_list_and_flag(monkeypatch):
    monkeypatch.setenv("TEST_USER_EMAILS", " A@x.com, ,b@y.com ")
    assert config._env_list("TEST_USER_EMAILS") == ["a@x.com", "b@y.com"]
    monkeypatch.setenv("SOME_FLAG", "Yes")
    assert config._env_flag("SOME_FLAG") is True
    monkeypatch.setenv("SOME_FLAG", "0")
    assert config._env_flag("SOME_FLAG") is False


def test_testing_app_uses_sqlite(app):
    assert app.config["TESTING"] is True
    assert app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///")
    assert app.config["DEV_PLACEHOLDER_MODE"] is True
