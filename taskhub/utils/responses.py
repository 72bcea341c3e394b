# taskhub/utils/responses.py
from typing import Any, Optional


def envelope(message: str, data: Optional[Any] = None) -> dict:
    """Successful response body shared by every endpoint"""
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return body
