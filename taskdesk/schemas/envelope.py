from typing import Any, Iterable, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

# Request sections FastAPI prefixes onto error locations
_LOCATION_ROOTS = {"body", "query", "path", "header", "cookie", "form"}


def envelope(data: Any = None, message: str = "", status: str = "success", error: Any = None, status_code: int = 200) -> JSONResponse:
    """Wrap a payload in the uniform {status, message, data, error} response."""
    body = {"status": status, "message": message, "data": data, "error": error}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def field_errors(errors: Iterable[dict]) -> dict:
    """Collapse pydantic/FastAPI error dicts into ``{field: [messages]}``."""
    result: dict = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if len(loc) > 1 and loc[0] in _LOCATION_ROOTS:
            loc = loc[1:]
        field = ".".join(loc) if loc else "non_field_errors"
        msg = str(err.get("msg", "Invalid value"))
        # pydantic prefixes messages raised from our own validators
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        result.setdefault(field, []).append(msg)
    return result


def merge_errors(*maps: Optional[dict]) -> dict:
    merged: dict = {}
    for m in maps:
        for field, messages in (m or {}).items():
            merged.setdefault(field, []).extend(messages)
    return merged
