"""Response envelope shared by every endpoint.

Every response is HTTP 200 with ``{"success": bool, "data"?: ..., "message"?: str}``.
"""
from typing import Any, Dict, Optional

from catalog.models import CatalogRecord

def serialize(value: Any) -> Any:
    """Convert records (and lists of records) to their wire form."""
    if isinstance(value, CatalogRecord):
        return value.to_item()
    if isinstance(value, (list, tuple)):
        return [serialize(item) for item in value]
    return value

def ok(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    response: Dict[str, Any] = {'success': True}
    if data is not None:
        response['data'] = serialize(data)
    if message is not None:
        response['message'] = message
    return response

def fail(message: str) -> Dict[str, Any]:
    return {'success': False, 'message': message}

def validation_error(detail: str) -> Dict[str, Any]:
    return fail(f"Validation Error: {detail}")

def operation_error(operation: str, error: Exception) -> Dict[str, Any]:
    return fail(f"Error occured during {operation}: {error}")
