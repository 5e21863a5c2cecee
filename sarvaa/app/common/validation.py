from __future__ import annotations

from typing import Any, Dict, Iterable, Optional
from flask import request

from sarvaa.app.common.errors import abort_json, validation_error


def get_json(optional: bool = False) -> Dict[str, Any]:
    """Return the JSON object body.

    With ``optional=True`` an empty body is treated as ``{}`` (for endpoints
    whose fields all have defaults).
    """
    if optional and not request.get_data():
        return {}
    if not request.is_json:
        abort_json(400, "invalid_json", "Request must be application/json")
    data = request.get_json(silent=True)
    if data is None or not isinstance(data, dict):
        abort_json(400, "invalid_json", "Malformed JSON body")
    return data


def require_fields(data: Dict[str, Any], fields: Iterable[str]) -> None:
    missing = [f for f in fields if f not in data or data[f] in (None, "")]
    if missing:
        abort_json(400, "validation_error", "Missing required fields", {"missing": missing})


def int_field(data: Dict[str, Any], name: str, default: Optional[int] = None) -> int:
    raw = data.get(name, default)
    if raw is None:
        validation_error(f"{name} is required", field=name)
    # bool is an int subclass; reject it explicitly
    if isinstance(raw, bool):
        validation_error(f"{name} must be an integer", field=name)
    try:
        return int(raw)
    except (TypeError, ValueError):
        validation_error(f"{name} must be an integer", field=name)


def str_field(data: Dict[str, Any], name: str) -> str:
    return str(data.get(name) or "").strip()


def digits_only(value: Any) -> str:
    return "".join(ch for ch in str(value or "") if ch.isdigit())


def query_int(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        validation_error(f"{name} must be an integer", field=name)
