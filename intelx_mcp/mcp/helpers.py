"""Helper functions for MCP tool handlers.

Provides argument validation shared across handlers.
"""

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from intelx_mcp.mcp.errors import InvalidParamsError

RequestT = TypeVar("RequestT", bound=BaseModel)


def parse_request(model: type[RequestT], args: dict[str, Any] | None) -> RequestT:
    """Validate tool arguments into a request model.

    Args:
        model: Request model class.
        args: Raw tool arguments.

    Returns:
        Validated request.

    Raises:
        InvalidParamsError: Arguments failed validation (first error reported).
    """
    try:
        return model.model_validate(args or {})
    except ValidationError as e:
        first = e.errors()[0]
        param_name = ".".join(str(part) for part in first.get("loc", ())) or None
        raise InvalidParamsError(
            first.get("msg", "Invalid parameters"),
            param_name=param_name,
            received=first.get("input") if param_name else None,
        ) from e
