from typing import Any, Dict, Mapping

from ..errors import ValidationError


def require_text(payload: Mapping[str, Any], field: str) -> str:
    value = str(payload.get(field) or "").strip()
    if not value:
        raise ValidationError(f"{field} is required", field=field)
    return value


def ensure_positive_int(value: Any, field: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be an integer", field=field) from exc
    if number < 0:
        raise ValidationError(f"{field} must be >= 0", field=field)
    return number


def require_object(value: Any, field: str = "body") -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValidationError(f"{field} must be a JSON object", field=field)
    return dict(value)
