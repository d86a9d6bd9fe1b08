"""Tracking payloads — the immutable values callers hand to the proxy.

Field names accept both snake_case and the camelCase spelling used by
browser-side analytics snippets (``userId``), so payloads can be built
straight from JSON.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _Payload(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        validate_by_name=True,
        validate_by_alias=True,
    )

    properties: dict[str, Any] | None = None


class TrackingEvent(_Payload):
    """A named custom event.

    Examples
    --------
    >>> TrackingEvent(name="Signup", properties={"plan": "pro"}).name
    'Signup'
    """

    name: str
    user_id: str | None = None
    timestamp: float | None = None  # epoch seconds


class UserIdentity(_Payload):
    """Identifies the current user, optionally with profile properties."""

    id: str


class PageView(_Payload):
    """A page (or screen) view."""

    url: str
    title: str | None = None
