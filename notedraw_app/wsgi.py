# notedraw_app/wsgi.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from . import create_app

app = create_app()
