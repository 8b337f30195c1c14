"""HTML sanitising for free-text appraisal fields."""

from typing import Any, Optional

from bleach.css_sanitizer import CSSSanitizer
import bleach

from src.core.config import settings


_css_sanitizer = CSSSanitizer(allowed_css_properties=settings.ALLOWED_CSS_PROPERTIES)


def sanitize_html_content(html: str) -> str:
    """Sanitize HTML content with whitelisted tags and CSS properties."""
    return bleach.clean(
        html,
        tags=settings.ALLOWED_TAGS,
        attributes=settings.ALLOWED_ATTRIBUTES,
        css_sanitizer=_css_sanitizer,
        strip=True,
        strip_comments=True
    )


def sanitize_optional_text(value: Optional[str]) -> Optional[str]:
    """Sanitize a text field, passing ``None`` and empty strings through."""
    if not value:
        return value
    return sanitize_html_content(value).strip()


def sanitize_record(record: dict) -> dict:
    """Sanitize every string value of a free-form record."""
    cleaned: dict[str, Any] = {}
    for key, value in record.items():
        cleaned[key] = sanitize_optional_text(value) if isinstance(value, str) else value
    return cleaned
