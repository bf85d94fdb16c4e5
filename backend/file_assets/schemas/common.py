"""Shared response envelope."""
from typing import Any


def create_response(data: Any = None, status: int = 200) -> dict:
    """Wrap payload data in the standard ``{status, data}`` envelope."""
    return {"status": status, "data": data}
