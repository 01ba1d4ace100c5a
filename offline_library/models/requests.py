"""Intercepted request and fetch result models."""

from enum import Enum
from urllib.parse import urlsplit

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator

from .base import Base64Body
from .base import CamelCaseModel
from .cache import ResponseSnapshot

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class RequestMode(str, Enum):
    """How the host issued the request."""

    NAVIGATE = "navigate"
    CORS = "cors"
    NO_CORS = "no-cors"
    SAME_ORIGIN = "same-origin"


class RouteClass(str, Enum):
    """Request classification produced by the router.

    - NAVIGATION: same-origin GET for a page or static asset (cache-first)
    - API_DATA: same-origin GET for a data endpoint (network-first)
    - WRITE: same-origin mutating request under a queueable prefix
    - PASSTHROUGH: anything else, sent straight to the network
    """

    NAVIGATION = "navigation"
    API_DATA = "api-data"
    WRITE = "write"
    PASSTHROUGH = "passthrough"


class ResponseSource(str, Enum):
    """Where a served response came from."""

    NETWORK = "network"
    CACHE = "cache"
    OFFLINE = "offline"
    QUEUED = "queued"


class InterceptedRequest(BaseModel):
    """A request issued by the host application.

    Example:
        >>> request = InterceptedRequest(url="http://localhost:3000/api/accounts")
        >>> assert request.path == "/api/accounts"
    """

    model_config = ConfigDict(frozen=True)

    method: str = Field(default="GET", description="HTTP method")
    url: str = Field(description="Absolute request URL")
    headers: dict[str, str] = Field(default_factory=dict, description="Request headers (lower-cased names)")
    body: Base64Body = Field(default=b"", description="Request body")
    mode: RequestMode = Field(default=RequestMode.CORS, description="Request mode")

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        return v.upper()

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        parts = urlsplit(v)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"Request URL must be absolute, got: {v}")
        return v

    @field_validator("headers")
    @classmethod
    def normalize_headers(cls, v: dict[str, str]) -> dict[str, str]:
        return {name.lower(): value for name, value in v.items()}

    @property
    def origin(self) -> str:
        parts = urlsplit(self.url)
        return f"{parts.scheme.lower()}://{parts.netloc.lower()}"

    @property
    def path(self) -> str:
        return urlsplit(self.url).path or "/"

    @property
    def is_read(self) -> bool:
        """Only GET is treated as a cacheable read."""
        return self.method == "GET"

    @property
    def is_mutation(self) -> bool:
        """POST, PUT, PATCH and DELETE change server state and may be queued."""
        return self.method in MUTATING_METHODS

    @property
    def is_navigation(self) -> bool:
        return self.mode == RequestMode.NAVIGATE


class FetchResult(CamelCaseModel):
    """Outcome of handling one intercepted request."""

    model_config = ConfigDict(frozen=True)

    snapshot: ResponseSnapshot = Field(description="Response to hand back to the host")
    source: ResponseSource = Field(description="Where the response came from")
    route: RouteClass = Field(description="How the request was classified")
    queued_id: str | None = Field(default=None, description="Local id when the write was queued")

    @property
    def from_cache(self) -> bool:
        return self.source == ResponseSource.CACHE
