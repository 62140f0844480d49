from datetime import datetime
from typing import Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict


def is_request_uri(value: str) -> bool:
    """Accept absolute URLs (``scheme://...``) or absolute paths (``/grafana``)."""
    if not value or any(ch.isspace() for ch in value):
        return False
    if value.startswith("/"):
        return True
    parts = urlsplit(value)
    return bool(parts.scheme) and (bool(parts.netloc) or bool(parts.path))


class ApplicationRequest(BaseModel):
    """Body accepted when creating or updating a catalog entry."""

    name: str = ""
    description: str = ""
    url: str = ""
    icon: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Grafana",
                "description": "Dashboards",
                "url": "http://grafana.lan:3000",
                "icon": "📈",
            }
        }
    )

    def validation_error(self) -> Optional[str]:
        """Return the first problem with this request, or ``None``."""
        if not self.name:
            return "Name is required"
        if not self.url:
            return "URL is required"
        if not is_request_uri(self.url):
            return "Invalid URL format"
        return None


class ApplicationOut(BaseModel):
    """Catalog entry as returned by the API."""

    id: str
    name: str
    description: str
    url: str
    icon: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
