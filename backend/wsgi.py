# backend/wsgi.py
from slabworks import create_app

app = create_app()
