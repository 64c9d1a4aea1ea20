"""
User-facing messages for upload failures.

Both tables are closed: every failure the pipeline surfaces to a person is
rendered through one of them.
"""

from __future__ import annotations

import asyncio
from typing import Mapping, Optional

from skola_media.core.exceptions import (
    ChunkUploadError,
    FileAccessError,
    FormatConversionError,
    SignedUrlError,
    UploadCancelledError,
)

# Server error code -> sentence shown to the user
ERROR_MESSAGES: Mapping[str, str] = {
    "INVALID_PARAMS": "Faltan datos requeridos",
    "NOT_FOUND": "No se encontró el archivo",
    "FILE_TOO_LARGE": "El archivo es muy grande",
    "INVALID_FILE_TYPE": "Formato de archivo no soportado",
    "UNAUTHORIZED": "No tienes permiso para esta acción",
    "S3_ERROR": "Error al subir archivo, intenta de nuevo",
}

NO_RESPONSE_MESSAGE = "No response from server"

# Failure class -> actionable sentence for upload screens
FAILURE_MESSAGES: Mapping[str, str] = {
    "network": "Error de conexión. Verifica tu conexión a internet e intenta de nuevo.",
    "timeout": "La subida tardó demasiado. Verifica tu conexión e intenta de nuevo.",
    "permission": "No se tiene permiso para acceder al archivo. Por favor selecciona el archivo de nuevo.",
    "not_found": "El archivo no fue encontrado. Por favor selecciona el archivo de nuevo.",
    "conversion": "No se pudo convertir la imagen. Por favor selecciona otra imagen.",
    "cancelled": "La subida fue cancelada.",
    "incomplete": "La subida del video no se completó. Por favor intenta de nuevo.",
    "generic": "Ocurrió un error al subir el archivo. Por favor intenta de nuevo.",
}


def get_error_message(code: Optional[str], message: Optional[str] = None) -> str:
    """Map a server error code to its fixed sentence.

    Unmapped codes fall back to the server supplied text.
    """
    if code and code in ERROR_MESSAGES:
        return ERROR_MESSAGES[code]
    return message or code or NO_RESPONSE_MESSAGE


def classify_failure(exc: BaseException) -> str:
    """Return the FAILURE_MESSAGES key that best describes ``exc``."""
    if isinstance(exc, UploadCancelledError):
        return "cancelled"
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return "timeout"
    if isinstance(exc, FileAccessError):
        return "not_found"
    if isinstance(exc, FormatConversionError):
        return "conversion"
    if isinstance(exc, SignedUrlError) and exc.is_not_found:
        return "not_found"
    if isinstance(exc, ChunkUploadError):
        return "incomplete"
    if isinstance(exc, PermissionError):
        return "permission"
    if isinstance(exc, ConnectionError):
        return "network"

    text = str(exc).lower()
    if "network" in text or "connection" in text:
        return "network"
    if "timeout" in text or "timed out" in text:
        return "timeout"
    if "permission" in text or "unauthorized" in text:
        return "permission"
    if "file not found" in text or "no such file" in text:
        return "not_found"
    return "generic"


def describe_failure(exc: BaseException) -> str:
    """One actionable sentence for any pipeline failure, never a raw error."""
    return FAILURE_MESSAGES[classify_failure(exc)]
