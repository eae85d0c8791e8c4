from fastapi.responses import JSONResponse
from pydantic import BaseModel

# HTTP status for each error code carried by a failed result
ERROR_STATUS = {
    "validation": 400,
    "not_found": 404,
    "upstream_rate_limited": 429,
    "configuration": 503,
    "upstream_auth": 502,
    "upstream": 502,
    "parse": 502,
    "invalid_response": 502,
    "storage": 500,
}


def result_response(result: BaseModel, status_code: int = 200) -> JSONResponse:
    """Serialize a result object, picking the status from its error code when it failed"""
    if not getattr(result, "success", True):
        status_code = ERROR_STATUS.get(getattr(result, "error_code", None), 500)
    return JSONResponse(
        status_code=status_code,
        content=result.model_dump(mode="json", by_alias=True, exclude_none=True),
    )
