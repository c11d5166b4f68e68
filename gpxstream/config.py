"""Configuration model for GPX reading and writing.

``GpxOptions`` carries every tunable option with its default.  Build one
with keyword arguments, or from a ``key=value,flag`` option string with
``GpxOptions.from_option_string()``.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gpxstream.errors import ErrorCode, GpxConfigError

SOFT_NAME = "gpxstream"
SOFT_VERSION = "1.0"
SOFT_FULL_NAME = f"{SOFT_NAME} v{SOFT_VERSION}"

DEFAULT_GPX_VERSION = "1.0"

_VERSION_RE = re.compile(r"^\d+\.\d$")


def version_number(version: str) -> int:
    """"1.1" -> 11, "1.0" -> 10.  Anything unparseable is 0."""
    try:
        return int(round(float(version) * 10))
    except (TypeError, ValueError):
        return 0


class GpxOptions(BaseModel):
    """All GPX format options with their defaults."""

    model_config = ConfigDict(extra="forbid")

    # --- Short names ---
    snlen: int = Field(default=32, ge=1)
    suppresswhite: bool = False
    synthesize_shortnames: bool = False

    # --- Reading ---
    logpoint: bool = False

    # --- Writing ---
    urlbase: str = ""
    gpxver: str | None = None
    humminbirdextensions: bool = False
    garminextensions: bool = False
    elevprec: int = Field(default=3, ge=0)

    @field_validator("gpxver")
    @classmethod
    def _check_version(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        if not _VERSION_RE.match(value) or version_number(value) <= 0:
            raise ValueError(f"gpx version number of {value} not valid")
        return value

    @property
    def vendor_extensions(self) -> bool:
        return self.humminbirdextensions or self.garminextensions

    @classmethod
    def build(cls, **kwargs) -> GpxOptions:
        """Construct, turning validation failures into ``GpxConfigError``."""
        try:
            return cls(**kwargs)
        except ValidationError as exc:
            code = ErrorCode.E_CONFIG_INVALID
            if any(err.get("loc") == ("gpxver",) for err in exc.errors()):
                code = ErrorCode.E_CONFIG_VERSION
            raise GpxConfigError(str(exc), code) from exc

    @classmethod
    def from_option_string(cls, text: str) -> GpxOptions:
        """Parse "snlen=8,gpxver=1.1,logpoint".  A bare key means true."""
        kwargs: dict[str, object] = {}
        for item in text.split(","):
            item = item.strip()
            if not item:
                continue
            key, sep, value = item.partition("=")
            key = key.strip()
            if key not in cls.model_fields:
                raise GpxConfigError(f"Unknown GPX option: {key}")
            kwargs[key] = value.strip() if sep else True
        return cls.build(**kwargs)
