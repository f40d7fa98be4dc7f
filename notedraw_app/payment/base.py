# notedraw_app/payment/base.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import Any


class PaymentProviderError(Exception):
    """Erro ao falar com a API do provedor."""


class WebhookVerificationError(Exception):
    """Assinatura de webhook ausente, inválida ou não verificável."""


class PaymentProvider:
    name = "base"

    def create_credit_checkout(self, *, package: dict, customer_email: str, user_id: int,
                               success_url: str, cancel_url: str) -> dict:
        """Cria checkout de pacote de créditos. Retorna ``{"id", "url"}``."""
        raise NotImplementedError

    def create_checkout(self, *, price_id: str, customer_email: str, user_id: int,
                        success_url: str, cancel_url: str) -> dict:
        """Cria checkout de assinatura. Retorna ``{"id", "url"}``."""
        raise NotImplementedError

    def create_customer_portal(self, *, customer_id: str, return_url: str) -> str:
        raise NotImplementedError

    def get_checkout_session(self, session_id: str) -> Any | None:
        """Consulta o checkout; se concluído e ainda não gravado, grava."""
        raise NotImplementedError

    def handle_webhook_event(self, payload: bytes, signature: str) -> None:
        """Verifica a assinatura e reconcilia o evento. Levanta em falha."""
        raise NotImplementedError
