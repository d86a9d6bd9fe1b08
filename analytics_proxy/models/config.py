"""Proxy and per-destination configuration models.

The configuration shape mirrors what front-end teams already write for
browser analytics snippets::

    {
        "providers": {
            "mixpanel": {"enabled": true, "token": "..."},
            "ga4": {"enabled": true, "measurementId": "G-XXXX"}
        },
        "globalProperties": {"appVersion": "1.0.0"},
        "enableDebug": false
    }

Keys are accepted in snake_case or camelCase.
"""

from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_ALIASED = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    validate_by_name=True,
    validate_by_alias=True,
)


class DestinationConfig(BaseModel):
    """Configuration for a single destination.

    Backends subclass this to declare their credential field; unknown keys
    are kept as extras so a generic config can later be re-validated into
    the backend-specific model.
    """

    model_config = ConfigDict(**_ALIASED, extra="allow")

    credential_field: ClassVar[str] = "credential"

    enabled: bool = False
    options: dict[str, Any] = Field(default_factory=dict)

    def credential(self) -> str | None:
        """Return the credential value, or ``None`` when absent or empty."""
        value = getattr(self, self.credential_field, None)
        if value is None and self.model_extra:
            value = self.model_extra.get(
                self.credential_field,
                self.model_extra.get(to_camel(self.credential_field)),
            )
        return value or None

    @property
    def is_eligible(self) -> bool:
        """A destination is eligible when enabled and carrying a credential."""
        return self.enabled and self.credential() is not None


class ProxyConfig(BaseModel):
    """Top-level proxy configuration."""

    model_config = _ALIASED

    providers: dict[str, DestinationConfig] = Field(default_factory=dict)
    global_properties: dict[str, Any] = Field(default_factory=dict)
    enable_debug: bool = False

    def merge(self, update: ProxyConfig) -> ProxyConfig:
        """Return a new config with the explicitly-set fields of *update* applied.

        Top-level fields are replaced.  ``providers`` is merged by
        destination name: each entry in *update* replaces that
        destination's entry wholesale, other destinations are kept.
        """
        changes: dict[str, Any] = {}
        for field in update.model_fields_set:
            if field == "providers":
                changes[field] = {**self.providers, **update.providers}
            else:
                changes[field] = getattr(update, field)
        return self.model_copy(update=changes)


def load_proxy_config(path: Path | str) -> ProxyConfig:
    """Load a ``ProxyConfig`` from a JSON or TOML file.

    For ``pyproject.toml`` the ``[tool.analytics-proxy]`` table is used.

    Raises
    ------
    pydantic.ValidationError
        If the file content does not match the configuration schema.
    """
    path = Path(path)
    if path.suffix == ".toml":
        data: dict[str, Any] = tomllib.loads(path.read_text(encoding="utf-8"))
        if path.name == "pyproject.toml":
            data = data.get("tool", {}).get("analytics-proxy", {})
    else:
        data = json.loads(path.read_text(encoding="utf-8"))
    return ProxyConfig.model_validate(data)
