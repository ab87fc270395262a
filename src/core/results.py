"""
Structured operation results.

Validation failures and blocked deletes are expected outcomes the client renders
inline, so services return them as an ``ActionResult`` instead of raising.
Routers turn a result into a response with ``result_response``.
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

T = TypeVar("T", bound=BaseModel)

FieldErrors = Dict[str, List[str]]

_LOCATION_PREFIXES = {"body", "query", "path", "form"}
_VALUE_ERROR_PREFIX = "Value error, "


def flatten_errors(errors: Sequence[Dict[str, Any]]) -> FieldErrors:
    """
    Flatten pydantic error dicts into ``{field: [messages]}``.

    Args:
        errors: Output of ``ValidationError.errors()``

    Returns:
        FieldErrors: Messages grouped by dotted field name
    """
    flattened: FieldErrors = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        field = ".".join(loc) or "__root__"
        message = error.get("msg", "Invalid value")
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        flattened.setdefault(field, []).append(message)
    return flattened


def parse_payload(schema: Type[T], data: Any) -> Tuple[Optional[T], Optional[FieldErrors]]:
    """
    Validate raw input against a schema without raising.

    Returns:
        (model, None) on success, (None, field_errors) on failure
    """
    if isinstance(data, schema):
        return data, None
    try:
        return schema.model_validate(data or {}), None
    except ValidationError as exc:
        return None, flatten_errors(exc.errors())


class ActionResult(BaseModel):
    """
    Outcome of a mutating operation.

    Fields:
    - success: Whether the operation was applied
    - id: Id of the created record, when one was created
    - error: Top-level error message
    - errors: Field-level validation messages
    - count: Number of referrals blocking a delete
    """
    success: bool = True
    id: Optional[int] = None
    error: Optional[str] = None
    errors: Optional[FieldErrors] = None
    count: Optional[int] = None

    @classmethod
    def ok(cls, id: Optional[int] = None) -> "ActionResult":
        return cls(success=True, id=id)

    @classmethod
    def invalid(cls, errors: FieldErrors) -> "ActionResult":
        return cls(success=False, errors=errors)

    @classmethod
    def failure(cls, message: str) -> "ActionResult":
        return cls(success=False, error=message)

    @classmethod
    def blocked(cls, count: int, message: str) -> "ActionResult":
        return cls(success=False, error=message, count=count)

    @property
    def is_blocked(self) -> bool:
        return not self.success and self.count is not None


def result_response(result: ActionResult, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    """
    Map an ActionResult onto an HTTP response.

    - field errors -> 422
    - referenced-entity block -> 409 with the blocking count
    - any other failure -> 400
    """
    if result.success:
        content: Dict[str, Any] = {"success": True}
        if result.id is not None:
            content["id"] = result.id
        return JSONResponse(status_code=success_status, content=content)

    if result.errors:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": "Validation error", "errors": result.errors},
        )

    if result.is_blocked:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": result.error, "count": result.count},
        )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": result.error},
    )
