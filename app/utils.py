import math
import uuid

from fastapi import HTTPException, status


def validate_id(value: str, label: str = "ID") -> str:
    """Reject identifiers that are not well-formed UUIDs with a 400."""
    try:
        uuid.UUID(str(value))
    except (ValueError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label}: {value}"
        )
    return str(value)


def paginate(query, page: int, limit: int, serializer):
    """Apply offset/limit to a query and wrap the page in the list envelope."""
    total = query.count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "data": [serializer(item) for item in items],
        "total": total,
        "page": page,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def blank_to_none(value):
    """Store empty or whitespace-only optional strings as NULL."""
    if value is None:
        return None
    value = value.strip()
    return value or None
