# discussify/utils/responses.py
from typing import Any, Optional


def ok(message: Optional[str] = None, data: Any = None, **extra) -> dict:
    """Success envelope: {"success": true, "message"?, "data"?, ...extra}"""
    body: dict = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def fail(message: str) -> dict:
    return {"success": False, "message": message}
