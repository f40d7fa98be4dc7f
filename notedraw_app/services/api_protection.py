# notedraw_app/services/api_protection.py
# -*- coding: utf-8 -*-
"""Proteção das rotas caras: autenticação, rate limit por usuário/IP e créditos.

O rate limit usa a biblioteca ``limits`` em janela fixa, com armazenamento em
memória por processo (chaves expiradas são descartadas pelo próprio storage).
"""
from __future__ import annotations
import math
import time
from dataclasses import dataclass

from flask import current_app, jsonify, request, session
from limits import parse, RateLimitItem
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

from .credits import consume_credits, has_enough_credits, InsufficientCreditsError

_storage = MemoryStorage()
_limiter = FixedWindowRateLimiter(_storage)


def rate_limit_item(operation: str, scope: str) -> RateLimitItem:
    """``API_PROTECTION[op]["per_<scope>"]`` -> ``"<requests>/<window> second"``."""
    rule = current_app.config["API_PROTECTION"][operation][f"per_{scope}"]
    return parse(f"{int(rule['requests'])}/{int(rule['window'])} second")


def hit(operation: str, scope: str, key: str) -> bool:
    """Conta uma requisição; False quando a janela atual já está cheia."""
    return _limiter.hit(rate_limit_item(operation, scope), operation, key)


def retry_after(operation: str, scope: str, key: str) -> int:
    stats = _limiter.get_window_stats(rate_limit_item(operation, scope), operation, key)
    return max(int(math.ceil(stats.reset_time - time.time())), 1)


def remaining(operation: str, scope: str, key: str) -> int:
    return _limiter.get_window_stats(rate_limit_item(operation, scope), operation, key).remaining


def reset_limiters() -> None:
    _storage.reset()


def get_client_ip() -> str:
    fwd = request.headers.get("x-forwarded-for")
    if fwd:
        return fwd.split(",")[0].strip()
    real = request.headers.get("x-real-ip")
    if real:
        return real.strip()
    return request.remote_addr or "unknown"


def is_test_account(email: str | None) -> bool:
    if not email:
        return False
    return email.lower() in (current_app.config.get("TEST_USER_EMAILS") or [])


@dataclass
class ProtectionResult:
    ok: bool
    user: dict | None = None
    is_test_account: bool = False
    response: tuple | None = None    # (resposta flask, status) quando ok=False


def _fail(message: str, status: int, headers: dict | None = None) -> ProtectionResult:
    resp = jsonify(success=False, error=message)
    if headers:
        resp.headers.update(headers)
    return ProtectionResult(ok=False, response=(resp, status))


def protect_api(operation: str, required_credits: int | None = None) -> ProtectionResult:
    """Roda as checagens na ordem: login, rate limit (usuário e IP), saldo."""
    user = session.get("user")
    if not user or not user.get("id"):
        return _fail("Unauthorized", 401)

    test_account = is_test_account(user.get("email"))
    if test_account:
        return ProtectionResult(ok=True, user=user, is_test_account=True)

    for scope, key in (("user", f"user:{user['id']}"), ("ip", f"ip:{get_client_ip()}")):
        if not hit(operation, scope, key):
            current_app.logger.warning("Rate limit hit for %s (%s)", key, operation)
            return _fail("Too many requests", 429, {
                "Retry-After": str(retry_after(operation, scope, key)),
                "X-RateLimit-Remaining": "0",
            })

    rule = current_app.config["API_PROTECTION"][operation]
    if rule.get("enforce_credits", True):
        needed = rule["credits_per_request"] if required_credits is None else required_credits
        try:
            if not has_enough_credits(int(user["id"]), needed):
                return _fail("Insufficient credits", 402)
        except Exception:
            current_app.logger.exception("Credit check failed")
            return _fail("Credit system error", 500)

    return ProtectionResult(ok=True, user=user)


def charge(result: ProtectionResult, amount: int, description: str) -> None:
    """Debita créditos após uma operação bem-sucedida (contas de teste não pagam)."""
    if result.is_test_account or amount <= 0:
        return
    try:
        consume_credits(int(result.user["id"]), amount, description)
    except InsufficientCreditsError:
        current_app.logger.warning("User %s ran out of credits during %s", result.user["id"], description)
