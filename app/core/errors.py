from fastapi import HTTPException, status

from app.payments.base import InvalidSignatureError, PaymentGatewayError


def http_error(e: Exception) -> HTTPException:
    """Map a service exception to the HTTP error the API returns"""
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, PermissionError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, InvalidSignatureError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, PaymentGatewayError):
        code = status.HTTP_500_INTERNAL_SERVER_ERROR if e.config_error else status.HTTP_502_BAD_GATEWAY
        return HTTPException(status_code=code, detail=e.message)
    if isinstance(e, ValueError):
        code = status.HTTP_404_NOT_FOUND if 'not found' in str(e).lower() else status.HTTP_400_BAD_REQUEST
        return HTTPException(status_code=code, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
