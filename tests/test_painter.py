# tests/test_painter.py
import base64

import requests

from notedraw_app.ai import painter
from notedraw_app.ai.types import AISettings, PaintResult


def test_poll_interval_backoff_is_capped():
    assert painter.poll_interval(0) == 1.0
    assert painter.poll_interval(1) == 1.3
    assert painter.poll_interval(50) == painter.MAX_POLL_INTERVAL


def test_aspect_ratio_mapping():
    assert painter.aspect_ratio() == "3:4"
    assert painter.aspect_ratio(1920, 1080) == "16:9"
    assert painter.aspect_ratio(1000, 1000) == "1:1"
    assert painter.aspect_ratio(1080, 1920) == "9:16"


def test_placeholder_image_is_svg_data_url():
    url = painter.placeholder_image("draw <this>", title="T & U")
    assert url.startswith("data:image/svg+xml;base64,")
    svg = base64.b64decode(url.split(",", 1)[1]).decode("utf-8")
    assert "draw &lt;this&gt;" in svg
    assert "T &amp; U" in svg


def test_paint_placeholder_skips_network(app, monkeypatch):
    def _boom(*a, **k):
        raise AssertionError("network called")
    monkeypatch.setattr(painter, "paint_with_provider", _boom)
    with app.app_context():
        r = painter.paint("p", AISettings(use_placeholder_image=True))
    assert r.success and r.image_url.startswith("data:image/svg+xml")


def test_paint_retries_with_linear_delay(app, monkeypatch):
    attempts = []
    sleeps = []

    def _provider(prompt, settings):
        attempts.append(prompt)
        if len(attempts) < 3:
            return PaintResult(False, error_message="busy")
        return PaintResult(True, image_url="https://img/1.png")

    monkeypatch.setattr(painter, "paint_with_provider", _provider)
    monkeypatch.setattr(painter, "_sleep", sleeps.append)
    with app.app_context():
        r = painter.paint("p", AISettings())
    assert r.success and r.image_url == "https://img/1.png"
    assert len(attempts) == 3
    assert sleeps == [1.0, 2.0]


def test_paint_gives_up_after_max_retries(app, monkeypatch):
    monkeypatch.setattr(painter, "paint_with_provider",
                        lambda p, s: PaintResult(False, error_message="down"))
    monkeypatch.setattr(painter, "_sleep", lambda s: None)
    with app.app_context():
        r = painter.paint("p", AISettings())
    assert not r.success and r.error_message == "down"


def test_task_api_polls_until_completed(monkeypatch, fake_response):
    states = iter([
        {"data": {"status": "processing"}},
        {"data": {"status": "completed", "result": {"images": [{"url": ["https://img/x.png"]}]}}},
    ])
    monkeypatch.setattr(requests, "post", lambda *a, **k: fake_response(200, {"data": [{"task_id": "t-1"}]}))
    monkeypatch.setattr(requests, "get", lambda *a, **k: fake_response(200, next(states)))
    delays = []
    monkeypatch.setattr(painter, "_sleep", delays.append)

    r = painter.paint_with_task_api("p", "key", "https://api.test/v1/", "gpt-4o-image")
    assert r.success and r.image_url == "https://img/x.png"
    assert delays == [1.0, 1.3]


def test_task_api_failure_message(monkeypatch, fake_response):
    monkeypatch.setattr(requests, "post", lambda *a, **k: fake_response(200, {"task_id": "t-2"}))
    monkeypatch.setattr(requests, "get", lambda *a, **k: fake_response(
        200, {"data": {"status": "failed", "error": "nsfw"}}))
    monkeypatch.setattr(painter, "_sleep", lambda s: None)
    r = painter.paint_with_task_api("p", "key", "https://api.test/v1", "m")
    assert not r.success and r.error_message == "nsfw"


def test_task_api_requires_credentials():
    r = painter.paint_with_task_api("p", "", "", "m")
    assert not r.success


def test_gemini_inline_image(monkeypatch, fake_response):
    body = {"candidates": [{"content": {"parts": [{"text": "hi"},
                                                   {"inlineData": {"mimeType": "image/jpeg", "data": "QUJD"}}]}}]}
    monkeypatch.setattr(requests, "post", lambda *a, **k: fake_response(200, body))
    r = painter.paint_with_gemini("p", AISettings(gemini_api_key="g"))
    assert r.success and r.image_url == "data:image/jpeg;base64,QUJD"
