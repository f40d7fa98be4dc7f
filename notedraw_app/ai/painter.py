# notedraw_app/ai/painter.py
# -*- coding: utf-8 -*-
"""Painter: chama a API de imagem (gemini, apimart ou compatível com OpenAI)."""
from __future__ import annotations
import base64
import html
import time
from urllib.parse import quote

import requests
from flask import current_app

from .types import AISettings, PaintResult

MAX_RETRIES = 2
INITIAL_POLL_INTERVAL = 1.0
MAX_POLL_INTERVAL = 5.0
MAX_POLL_ATTEMPTS = 30
HTTP_TIMEOUT = 120

_sleep = time.sleep


def poll_interval(attempt: int) -> float:
    """Backoff exponencial: 1s * 1.3^n, limitado a 5s."""
    return min(INITIAL_POLL_INTERVAL * (1.3 ** attempt), MAX_POLL_INTERVAL)


def aspect_ratio(width: int | None = None, height: int | None = None) -> str:
    if not width or not height:
        return "3:4"
    r = width / height
    for limit, label in ((2.2, "21:9"), (1.6, "16:9"), (1.4, "3:2"), (1.2, "4:3"), (1.1, "5:4"),
                         (0.9, "1:1"), (0.75, "4:5"), (0.7, "3:4"), (0.6, "2:3")):
        if r >= limit:
            return label
    return "9:16"


def placeholder_image(prompt: str, title: str = "Visual Note") -> str:
    """SVG com o prompt, para rodar sem API de imagem."""
    short = prompt[:500] + ("..." if len(prompt) > 500 else "")
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="768" height="1024" viewBox="0 0 768 1024">'
        '<rect width="768" height="1024" fill="#f8f9fa"/>'
        '<rect x="20" y="20" width="728" height="984" rx="12" fill="none" stroke="#dee2e6" stroke-width="2"/>'
        '<text x="40" y="70" font-family="system-ui, sans-serif" font-size="14" fill="#6c757d">Prompt Preview</text>'
        f'<text x="40" y="110" font-family="system-ui, sans-serif" font-size="24" font-weight="bold" '
        f'fill="#1a1a2e">{html.escape(title)}</text>'
        '<foreignObject x="40" y="140" width="688" height="840">'
        '<div xmlns="http://www.w3.org/1999/xhtml" style="font-family: monospace; font-size: 13px; '
        f'white-space: pre-wrap; word-wrap: break-word;">{html.escape(short)}</div>'
        '</foreignObject></svg>'
    )
    return "data:image/svg+xml;base64," + base64.b64encode(svg.encode("utf-8")).decode("ascii")


# ---------------- Gemini ----------------
def paint_with_gemini(prompt: str, settings: AISettings) -> PaintResult:
    if not settings.gemini_api_key:
        return PaintResult(False, error_message="GEMINI_IMAGE_API_KEY not configured")
    url = f"{settings.gemini_base_url.rstrip('/')}/models/gemini-3-pro-image-preview:generateContent"
    body = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
    }
    r = requests.post(url, json=body, timeout=HTTP_TIMEOUT,
                      headers={"Authorization": f"Bearer {settings.gemini_api_key}"})
    if r.status_code >= 400:
        return PaintResult(False, error_message=f"Gemini API error: {r.status_code} - {r.text}")

    candidates = (r.json() or {}).get("candidates") or []
    if not candidates:
        return PaintResult(False, error_message="No candidates in Gemini response")
    parts = ((candidates[0] or {}).get("content") or {}).get("parts") or []
    for part in parts:
        inline = part.get("inlineData") or {}
        if inline.get("data"):
            mime = inline.get("mimeType") or "image/png"
            return PaintResult(True, image_url=f"data:{mime};base64,{inline['data']}")
    for part in parts:
        file_data = part.get("fileData") or {}
        if file_data.get("fileUri"):
            return PaintResult(True, image_url=file_data["fileUri"])
    return PaintResult(False, error_message="No image found in Gemini response")


# ---------------- Tarefas assíncronas (apimart / custom) ----------------
def _create_task(api_key: str, base_url: str, prompt: str, ratio: str, model: str) -> str:
    r = requests.post(
        f"{base_url}/images/generations",
        json={"model": model, "prompt": prompt, "size": ratio, "n": 1},
        headers={"Authorization": f"Bearer {api_key}"},
        timeout=HTTP_TIMEOUT,
    )
    if r.status_code >= 400:
        raise RuntimeError(f"API error: {r.status_code}")
    data = r.json() or {}
    items = data.get("data")
    if isinstance(items, list) and items and items[0].get("task_id"):
        return items[0]["task_id"]
    if data.get("task_id"):
        return data["task_id"]
    raise RuntimeError("Unexpected response format")


def _first(v):
    return v[0] if isinstance(v, list) and v else v


def _extract_image_url(task: dict) -> str | None:
    result = task.get("result") or {}
    images = result.get("images")
    if isinstance(images, list) and images:
        url = _first(images[0].get("url"))
        if url:
            return url
    for src in (result, task.get("output") or {}, task):
        url = _first(src.get("image_url") or src.get("url"))
        if url:
            return url
    items = task.get("data")
    if isinstance(items, list) and items:
        return _first(items[0].get("url") or items[0].get("image_url"))
    return None


def _query_task(api_key: str, base_url: str, task_id: str) -> tuple[str, str | None, str | None]:
    """Retorna (status, image_url, erro). status: completed | failed | processing."""
    r = requests.get(f"{base_url}/tasks/{quote(task_id, safe='')}",
                     headers={"Authorization": f"Bearer {api_key}"}, timeout=HTTP_TIMEOUT)
    if r.status_code >= 400:
        return "failed", None, f"Query error: {r.status_code}"
    data = r.json() or {}
    task = data.get("data") if isinstance(data.get("data"), dict) else data
    status = task.get("status") or task.get("state") or data.get("status") or "unknown"

    if status in ("completed", "success", "succeeded"):
        url = _extract_image_url(task)
        if url:
            return "completed", url, None
        return "failed", None, "No image URL in response"
    if status in ("failed", "error"):
        return "failed", None, task.get("error") or task.get("message") or data.get("message") or "Task failed"
    return "processing", None, None


def paint_with_task_api(prompt: str, api_key: str, base_url: str, model: str) -> PaintResult:
    if not base_url or not api_key:
        return PaintResult(False, error_message="Image provider requires a base URL and API key")
    base_url = base_url.rstrip("/")
    try:
        task_id = _create_task(api_key, base_url, prompt, aspect_ratio(), model)
    except (RuntimeError, requests.RequestException, ValueError) as e:
        return PaintResult(False, error_message=str(e))

    for attempt in range(MAX_POLL_ATTEMPTS):
        _sleep(poll_interval(attempt))
        try:
            status, url, err = _query_task(api_key, base_url, task_id)
        except (requests.RequestException, ValueError) as e:
            return PaintResult(False, error_message=str(e))
        if status == "completed":
            return PaintResult(True, image_url=url)
        if status == "failed":
            return PaintResult(False, error_message=err)
    return PaintResult(False, error_message="Timeout waiting for image generation")


def paint_with_provider(prompt: str, settings: AISettings) -> PaintResult:
    provider = (settings.image_provider or "apimart").lower()
    if provider == "apimart":
        if not settings.openai_api_key:
            return PaintResult(False, error_message="OPENAI_API_KEY not configured")
        return paint_with_task_api(prompt, settings.openai_api_key, settings.openai_base_url, settings.image_model)
    if provider in ("custom", "openai"):
        return paint_with_task_api(prompt, settings.custom_api_key, settings.custom_base_url, settings.image_model)
    return paint_with_gemini(prompt, settings)


def paint(prompt: str, settings: AISettings, title: str = "Visual Note") -> PaintResult:
    """Gera a imagem com até MAX_RETRIES novas tentativas."""
    if settings.use_placeholder_image or settings.dev_placeholder_mode:
        return PaintResult(True, image_url=placeholder_image(prompt, title))

    result = PaintResult(False, error_message="Max retries exceeded")
    for attempt in range(MAX_RETRIES + 1):
        try:
            result = paint_with_provider(prompt, settings)
        except requests.RequestException as e:
            result = PaintResult(False, error_message=str(e))
        if result.success:
            return result
        if attempt < MAX_RETRIES:
            current_app.logger.warning("Painter retry %s/%s: %s", attempt + 2, MAX_RETRIES + 1, result.error_message)
            _sleep(1.0 * (attempt + 1))
    return result
