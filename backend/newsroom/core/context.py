"""Request-scoped context: the acting user and request/correlation ids."""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass
from uuid import uuid4

from newsroom.models.user import UserRole


request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")
correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")


def new_request_id() -> str:
    return f"req-{uuid4().hex[:20]}"


def new_correlation_id() -> str:
    return f"corr-{uuid4().hex[:20]}"


def set_request_id(value: str) -> None:
    request_id_ctx.set(value or "")


def set_correlation_id(value: str) -> None:
    correlation_id_ctx.set(value or "")


def get_request_id() -> str:
    return request_id_ctx.get("")


def get_correlation_id() -> str:
    return correlation_id_ctx.get("")


@dataclass(frozen=True, slots=True)
class RequestMetadata:
    """Client details of the current request, known even when nobody is logged in."""

    ip_address: str | None = None
    user_agent: str | None = None


request_metadata_ctx: ContextVar[RequestMetadata | None] = ContextVar("request_metadata", default=None)


def set_request_metadata(value: RequestMetadata | None) -> None:
    request_metadata_ctx.set(value)


def get_request_metadata() -> RequestMetadata:
    return request_metadata_ctx.get(None) or RequestMetadata()


def request_metadata_from_headers(headers, client_host: str | None = None) -> RequestMetadata:
    return RequestMetadata(
        ip_address=extract_ip_address(headers) or client_host,
        user_agent=headers.get("user-agent"),
    )


def anonymous_client_metadata() -> dict[str, str | None]:
    metadata = get_request_metadata()
    return {
        "ip_address": metadata.ip_address,
        "user_agent": metadata.user_agent,
        "request_id": get_request_id() or None,
    }


@dataclass(frozen=True, slots=True)
class ActorContext:
    """Authenticated caller of a workflow operation.

    A missing actor is represented by ``None`` at call sites, never by a
    default role. Inactive users are not turned into actors.
    """

    user_id: int
    role: UserRole
    is_active: bool = True
    name: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    request_id: str | None = None

    @classmethod
    def from_user(
        cls,
        user,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
        request_id: str | None = None,
    ) -> ActorContext | None:
        if user is None or not user.is_active:
            return None
        return cls(
            user_id=user.id,
            role=UserRole(user.role),
            is_active=True,
            name=user.name,
            ip_address=ip_address,
            user_agent=user_agent,
            request_id=request_id or get_request_id() or None,
        )

    def client_metadata(self) -> dict[str, str | None]:
        return {
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "request_id": self.request_id or get_request_id() or None,
        }


def extract_ip_address(headers) -> str | None:
    """First address from the usual proxy headers, if any."""
    for header in ("x-forwarded-for", "x-real-ip", "x-client-ip", "cf-connecting-ip"):
        value = headers.get(header)
        if value:
            return value.split(",")[0].strip()
    return None
