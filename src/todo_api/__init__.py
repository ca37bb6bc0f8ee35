"""
Todo API package.

FastAPI backend for multi-user todo lists: token-based registration/login
and per-user CRUD over todos stored in SQLite. The ASGI app lives in
`todo_api.main:app`; `python -m todo_api` serves it with uvicorn.
"""

__version__ = "0.1.0"
