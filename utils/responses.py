"""Standard JSON envelope shared by every endpoint."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Response, jsonify


def _envelope(status: str, code: int, message: str, data: Any) -> dict:
    return {"status": status, "code": int(code), "message": message, "data": data}


def success(message: str, data: Any = None, code: int = HTTPStatus.OK) -> tuple[Response, int]:
    return jsonify(_envelope("SUCCESS", code, message, data)), int(code)


def error(message: str, code: int, data: Any = None) -> Response:
    response = jsonify(_envelope("ERROR", code, message, data))
    response.status_code = int(code)
    return response
