from django.http import Http404
from rest_framework import exceptions
from rest_framework.views import exception_handler as drf_exception_handler


def exception_handler(exc, context):
    """Render API errors as ``{"detail": ..., "code": ...}``.

    Validation errors keep their per-field messages under ``errors``.
    """

    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, exceptions.ValidationError):
        response.data = {
            "detail": "Invalid input.",
            "code": "validation_error",
            "errors": response.data,
        }
        return response

    if isinstance(exc, Http404):
        code = "not_found"
    elif isinstance(exc, exceptions.APIException):
        codes = exc.get_codes()
        code = codes if isinstance(codes, str) else exc.default_code
    else:
        code = "error"

    detail = response.data.get("detail") if isinstance(response.data, dict) else None
    payload = {"detail": detail or "", "code": code}
    ids = getattr(exc, "ids", None)
    if ids:
        payload["ids"] = ids
    response.data = payload
    return response
