"""Helpers that build the uniform JSON response envelopes."""

import math
from datetime import date, datetime, time
from typing import Any, Optional

from sqlmodel import SQLModel


def serialize(data: Any) -> Any:
    """Convert models, dates and nested containers into JSON-ready values."""
    if isinstance(data, SQLModel):
        return serialize(data.model_dump())
    if isinstance(data, dict):
        return {k: serialize(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [serialize(v) for v in data]
    if isinstance(data, (datetime, date, time)):
        return data.isoformat()
    return data


def success_response(data: Any, message: Optional[str] = None, pagination: Optional[dict] = None) -> dict:
    body = {"success": True, "data": serialize(data)}
    if message:
        body["message"] = message
    if pagination:
        body["pagination"] = pagination
    return body


def error_response(code: str, message: str, details: Optional[Any] = None) -> dict:
    body = {"success": False, "error": {"code": code, "message": message}}
    if details:
        body["error"]["details"] = details
    return body


def build_pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }

