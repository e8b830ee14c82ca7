"""
Ambient request context for activity records: store/website scope and client details.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from starlette.requests import Request


@dataclass(frozen=True)
class ClientInfo:
    client_ip: str | None = None
    user_agent: str | None = None


class ContextResolver(Protocol):
    def resolve_scope(self) -> tuple[int | None, int | None]:
        """Return (store_id, website_id)."""
        ...

    def resolve_client(self) -> ClientInfo:
        ...


@dataclass(frozen=True)
class StaticContext:
    """Context known up front, e.g. for background jobs and tests."""

    store_id: int | None = None
    website_id: int | None = None
    client_ip: str | None = None
    user_agent: str | None = None

    def resolve_scope(self) -> tuple[int | None, int | None]:
        return self.store_id, self.website_id

    def resolve_client(self) -> ClientInfo:
        return ClientInfo(client_ip=self.client_ip, user_agent=self.user_agent)


class RequestContext:
    """Context read from the incoming HTTP request when the record is written."""

    def __init__(
        self,
        request: Request,
        *,
        store_id: int | None = None,
        website_id: int | None = None,
    ) -> None:
        self.request = request
        self.store_id = store_id
        self.website_id = website_id

    def with_scope(self, store_id: int | None, website_id: int | None) -> "RequestContext":
        return RequestContext(self.request, store_id=store_id, website_id=website_id)

    def resolve_scope(self) -> tuple[int | None, int | None]:
        return self.store_id, self.website_id

    def resolve_client(self) -> ClientInfo:
        forwarded = self.request.headers.get("x-forwarded-for")
        if forwarded:
            client_ip = forwarded.split(",")[0].strip()
        else:
            client_ip = self.request.client.host if self.request.client else None
        return ClientInfo(
            client_ip=client_ip,
            user_agent=self.request.headers.get("user-agent"),
        )
