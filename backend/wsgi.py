# backend/wsgi.py
from smallbiz import create_app

app = create_app()
