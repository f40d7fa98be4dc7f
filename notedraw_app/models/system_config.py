# notedraw_app/models/system_config.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from datetime import datetime
from ..extensions import db

CONFIG_CATEGORIES = ("ai", "credits", "pricing", "limits", "features", "site")


class SystemConfig(db.Model):
    __tablename__ = "system_configs"

    id = db.Column(db.Integer, primary_key=True)
    category = db.Column(db.String(50), index=True, nullable=False)   # ai, credits, pricing...
    key = db.Column(db.String(100), index=True, nullable=False)
    value = db.Column(db.Text, default="")
    value_type = db.Column(db.String(20), default="string")          # string, number, boolean, json
    label = db.Column(db.String(120))
    description = db.Column(db.String(255))
    is_secret = db.Column(db.Boolean, default=False)
    updated_by = db.Column(db.Integer, db.ForeignKey("users.id"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("category", "key", name="uq_system_configs_category_key"),
    )
