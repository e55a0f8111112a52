from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


# ── Erreurs métier colis ───────────────────────────────────────────────────────
class ParcelError(Exception):
    """Base de toutes les erreurs remontées par le cycle de vie colis."""
    kind = "parcel_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(ParcelError):
    kind = "validation_error"
    status_code = 422


class NotFound(ParcelError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Parcel"):
        super().__init__(f"{resource} not found")


class Forbidden(ParcelError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class InvalidTransition(ParcelError):
    kind = "invalid_transition"
    status_code = status.HTTP_400_BAD_REQUEST


class Conflict(ParcelError):
    """Course de concurrence optimiste perdue : relire le colis et réessayer."""
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


async def parcel_error_handler(request: Request, exc: ParcelError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.kind, "detail": exc.detail},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Corps de requête mal formé : même enveloppe que ValidationError."""
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{field}: {err.get('msg')}" if field else err.get("msg", ""))
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={"success": False, "error": ValidationError.kind, "detail": "; ".join(messages)},
    )


# ── Helpers HTTP (couche auth) ───────────────────────────────────────────────
def credentials_exception(detail: str = "Invalid credentials or expired token") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def forbidden_exception(detail: str = "Forbidden: insufficient permissions") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=detail,
    )

