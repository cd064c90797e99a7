import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.platform.response import api_response


class AppError(Exception):
    """Base class for errors surfaced to visitors with a human-readable message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Erreur inconnue."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Merci de remplir tous les champs pour accéder aux workflows 🙏"


class InvalidTokenError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Token invalide ou expiré. Merci de repasser par le formulaire."


class DuplicateEmailError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Cet email est déjà inscrit."


class BackendUnavailableError(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Service momentanément indisponible. Réessaie dans quelques secondes."


class ObjectNotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Fichier en cours d'upload, réessaye dans 1 min"


def add_exception_handlers(app):
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return api_response(message=exc.message, status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return api_response(message=str(exc.detail) or "Error", status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return api_response(
            message="Validation failed",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            data={"errors": exc.errors()},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logging.exception(f"Unhandled exception: {exc}")
        return api_response(
            message="Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
