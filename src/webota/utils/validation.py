"""Static checks on a submission before it is sent to the device."""

from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel

from webota.errors import ValidationError

FIRMWARE_SUFFIX = ".bin"


class ValidationResult(BaseModel):
    """Outcome of a validation check; ``error`` is user-facing."""

    valid: bool
    error: Optional[str] = None

    def raise_if_invalid(self) -> None:
        """Raise ValidationError carrying the user-facing message."""
        if not self.valid:
            raise ValidationError(self.error)


def validate_firmware(
    filename: Optional[str],
    size: int,
    max_size: int = 10 * 1024 * 1024,
) -> ValidationResult:
    """Check a local firmware file before upload.

    Args:
        filename: Selected file name, None if nothing selected
        size: File size in bytes
        max_size: Upload limit in bytes

    Returns:
        ValidationResult
    """
    if not filename:
        return ValidationResult(valid=False, error="⚠️ Please select a firmware file.")

    if not filename.endswith(FIRMWARE_SUFFIX):
        return ValidationResult(valid=False, error="⚠️ Only .bin files are allowed.")

    if size > max_size:
        size_mb = max_size // (1024 * 1024)
        return ValidationResult(
            valid=False, error=f"⚠️ File size exceeds {size_mb}MB limit."
        )

    if size == 0:
        return ValidationResult(valid=False, error="⚠️ File is empty.")

    return ValidationResult(valid=True)


def validate_url(url: Optional[str]) -> ValidationResult:
    """Check a remote firmware URL the device will fetch."""
    if not url or not url.strip():
        return ValidationResult(valid=False, error="⚠️ Please enter a URL.")

    try:
        parsed = urlparse(url)
    except ValueError:
        return ValidationResult(valid=False, error="⚠️ Invalid URL format.")

    if not parsed.scheme or not parsed.netloc:
        return ValidationResult(valid=False, error="⚠️ Invalid URL format.")

    if parsed.scheme not in ("http", "https"):
        return ValidationResult(
            valid=False, error="⚠️ URL must use HTTP or HTTPS protocol."
        )

    if not url.endswith(FIRMWARE_SUFFIX):
        return ValidationResult(valid=False, error="⚠️ URL must point to a .bin file.")

    return ValidationResult(valid=True)
