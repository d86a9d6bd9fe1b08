"""Shared payload helpers for destination adapters.

Keeps the per-backend modules focused on the vendor calls themselves.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from analytics_proxy.models.payloads import PageView

PAGE_VIEW_EVENT = "Page View"


def remap_properties(
    properties: Mapping[str, Any] | None, property_map: Mapping[str, str]
) -> dict[str, Any]:
    """Rename keys found in *property_map*; other keys pass through.

    Examples
    --------
    >>> remap_properties({"email": "a@b.c", "plan": "pro"}, {"email": "$email"})
    {'$email': 'a@b.c', 'plan': 'pro'}
    """
    return {property_map.get(key, key): value for key, value in (properties or {}).items()}


def page_view_properties(page_view: PageView) -> dict[str, Any]:
    """Flatten a page view into event properties for event-based backends."""
    return {
        "url": page_view.url,
        "title": page_view.title,
        **(page_view.properties or {}),
    }
