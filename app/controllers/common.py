from flask import request

from app.exceptions import ValidationError


def json_body(*required: str) -> dict:
    """Parsed JSON object body; ValidationError if it is missing or lacks ``required`` keys."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Error: JSON object body required")
    missing = [k for k in required if data.get(k) in (None, "")]
    if missing:
        raise ValidationError(f"Error: missing required fields: {', '.join(missing)}")
    return data
