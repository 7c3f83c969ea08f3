from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictInt


class AuthRequest(BaseModel):
    password: str


class SessionInfo(BaseModel):
    sid: str


class AuthResponse(BaseModel):
    session: SessionInfo


# Counts are StrictInt so numeric strings are rejected rather than coerced.
class QueryStats(BaseModel):
    """Rolling 24h counters reported under ``queries`` in ``stats/summary``."""

    types: dict[str, StrictInt]
    status: dict[str, StrictInt]
    replies: dict[str, StrictInt]
    total: StrictInt
    blocked: StrictInt
    unique_domains: StrictInt
    forwarded: StrictInt
    cached: StrictInt


class ClientStats(BaseModel):
    active: StrictInt
    total: StrictInt


class GravityStats(BaseModel):
    domains_being_blocked: StrictInt


class StatsResponse(BaseModel):
    queries: QueryStats
    clients: ClientStats
    gravity: GravityStats


class UpstreamInfo(BaseModel):
    ip: str
    name: str
    port: StrictInt
    count: StrictInt


class UpstreamsResponse(BaseModel):
    upstreams: list[UpstreamInfo]


class ReplyInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reply_type: str = Field(alias="type")


class ClientInfo(BaseModel):
    ip: str


class QueryInfo(BaseModel):
    """One record of the raw query log."""

    model_config = ConfigDict(populate_by_name=True)

    query_type: str = Field(alias="type")
    status: str
    reply: ReplyInfo
    client: ClientInfo
    upstream: str | None = None


class QueriesResponse(BaseModel):
    queries: list[QueryInfo]
