"""Validation helpers for submission resources."""

from pathlib import PurePosixPath
from urllib.parse import urlparse

from django.conf import settings
from django.core.exceptions import ValidationError

ALLOWED_ATTACHMENT_SUFFIXES: set[str] = {
    ".pdf", ".ppt", ".pptx", ".doc", ".docx", ".txt", ".zip", ".png", ".jpg", ".jpeg",
}

def validate_resource_url(url: str) -> None:
    """Ensure URL uses https and, when configured, matches an allowed domain suffix."""
    result = urlparse(url)
    if result.scheme != "https" or not result.netloc:
        raise ValidationError("URL must use https.")
    allowed = getattr(settings, "ALLOWED_RESOURCE_DOMAINS", [])
    host = (result.hostname or "").lower()
    if allowed and not any(host == d.lower() or host.endswith("." + d.lower()) for d in allowed):
        raise ValidationError("URL domain not allowed.")

def validate_file_name(name: str) -> None:
    """Ensure an attachment name is a bare file name with an accepted suffix."""
    path = PurePosixPath(name)
    if path.name != name or name in ("", ".", ".."):
        raise ValidationError("File name must not contain a path.")
    if path.suffix.lower() not in ALLOWED_ATTACHMENT_SUFFIXES:
        raise ValidationError(f"Unsupported attachment type: {path.suffix or 'none'}")
