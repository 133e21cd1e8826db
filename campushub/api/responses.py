"""Standard response envelope: `{success, message, data}` plus `pagination` for lists."""

import math
from typing import Any, Iterable, Optional

from pydantic import BaseModel


def dump(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, mode="json")
    if isinstance(data, (list, tuple)):
        return [dump(item) for item in data]
    return data


def success(message: str, data: Any = None) -> dict:
    return {"success": True, "message": message, "data": dump(data)}


def failure(message: str, errors: Optional[Any] = None) -> dict:
    return {"success": False, "message": message, "errors": errors}


def paginated(message: str, items: Iterable[Any], page: int, limit: int, total: int) -> dict:
    return {
        "success": True,
        "message": message,
        "data": dump(list(items)),
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit) if limit else 0,
        },
    }
