# notedraw_app/models/__init__.py
# -*- coding: utf-8 -*-
from .user import User
from .payment import Payment
from .credit import UserCredit, CreditTransaction, CreditType
from .system_config import SystemConfig
from .redemption import RedemptionCode, RedemptionRecord
from .note import NoteProject, NoteCard


__all__ = [
    "User",
    "Payment",
    "UserCredit",
    "CreditTransaction",
    "CreditType",
    "SystemConfig",
    "RedemptionCode",
    "RedemptionRecord",
    "NoteProject",
    "NoteCard",
]
