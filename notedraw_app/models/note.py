# notedraw_app/models/note.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import json
from datetime import datetime
from ..extensions import db

LANGUAGES = ("en", "zh")
VISUAL_STYLES = ("sketch", "business", "cute", "minimal", "chalkboard")
GENERATE_MODES = ("compact", "detailed")
PROJECT_STATUSES = ("draft", "processing", "completed", "failed")
CARD_STATUSES = ("pending", "generating", "completed", "failed")


class NoteProject(db.Model):
    __tablename__ = "note_projects"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    title = db.Column(db.String(200))
    input_text = db.Column(db.Text, nullable=False)
    language = db.Column(db.String(5), default="en")
    visual_style = db.Column(db.String(20), default="sketch")
    generate_mode = db.Column(db.String(20), default="detailed")
    signature = db.Column(db.String(50))
    status = db.Column(db.String(20), default="draft", index=True)
    error_message = db.Column(db.Text)

    # plaza
    is_public = db.Column(db.Boolean, default=False, index=True)
    is_featured = db.Column(db.Boolean, default=False)
    slug = db.Column(db.String(80), unique=True, index=True)
    description = db.Column(db.String(500))
    tags = db.Column(db.String(200))            # separado por vírgula
    likes = db.Column(db.Integer, default=0)
    views = db.Column(db.Integer, default=0)
    published_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", backref=db.backref("projects", lazy="dynamic"))
    cards = db.relationship(
        "NoteCard", backref="project", order_by="NoteCard.order",
        cascade="all, delete-orphan", lazy="select",
    )

    def tag_list(self) -> list[str]:
        return [t.strip() for t in (self.tags or "").split(",") if t.strip()]

    def cover_image(self) -> str | None:
        for c in self.cards:
            if c.status == "completed" and c.image_url:
                return c.image_url
        return None

    def to_dict(self, with_cards: bool = False) -> dict:
        d = {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "inputText": self.input_text,
            "language": self.language,
            "visualStyle": self.visual_style,
            "generateMode": self.generate_mode,
            "signature": self.signature,
            "status": self.status,
            "errorMessage": self.error_message,
            "isPublic": bool(self.is_public),
            "isFeatured": bool(self.is_featured),
            "slug": self.slug,
            "description": self.description,
            "tags": self.tag_list(),
            "likes": self.likes or 0,
            "views": self.views or 0,
            "coverImage": self.cover_image(),
            "publishedAt": self.published_at.isoformat() if self.published_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
        if with_cards:
            d["cards"] = [c.to_dict() for c in self.cards]
        return d


class NoteCard(db.Model):
    __tablename__ = "note_cards"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("note_projects.id"), nullable=False, index=True)
    order = db.Column(db.Integer, nullable=False, default=0)
    original_text = db.Column(db.Text)
    structure = db.Column(db.Text)              # JSON serializado da estrutura do organizador
    prompt = db.Column(db.Text)
    image_url = db.Column(db.Text)
    status = db.Column(db.String(20), default="pending")
    error_message = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def structure_dict(self) -> dict | None:
        if not self.structure:
            return None
        try:
            return json.loads(self.structure)
        except ValueError:
            return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order": self.order,
            "originalText": self.original_text,
            "structure": self.structure_dict(),
            "prompt": self.prompt,
            "imageUrl": self.image_url,
            "status": self.status,
            "errorMessage": self.error_message,
        }
