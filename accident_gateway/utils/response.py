from typing import Any


def error_response(message: str, **extra: Any) -> dict:
    body: dict[str, Any] = {"error": message}
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


def status_response(message: str) -> dict:
    return {"status": "ok", "message": message}
