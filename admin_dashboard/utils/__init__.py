from typing import Optional


def is_json_content_type(content_type: Optional[str]) -> bool:
    """True for any content type carrying application/json, parameters ignored."""
    return bool(content_type) and "application/json" in content_type.lower()
