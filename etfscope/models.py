"""
etfscope.models - value types crossing the pipeline boundaries.

Every model here is an immutable value; the pipelines build a fresh instance
per call and the caller owns it afterwards.
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Boundary input from the model channel
# ---------------------------------------------------------------------------


class Source(BaseModel):
    """A ``(title, uri)`` citation the model claims a fact came from."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(default="Source", description="Page title of the cited source.")
    uri: str = Field(default="", description="URL of the cited source; may be empty.")


class RawModelResponse(BaseModel):
    """Untrusted text returned by the model channel plus its citation list."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(default="", description="Free-form response text.")
    citations: list[Source] = Field(
        default_factory=list,
        description="Citations attached to the response; entries may lack a URI.",
    )


# ---------------------------------------------------------------------------
# Normalized history
# ---------------------------------------------------------------------------


class PricePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str = Field(
        ...,
        pattern=r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$",
        description="Canonical trading date, YYYY-MM-DD.",
    )
    close: float = Field(..., gt=0, description="Daily closing price.")


class InstrumentHistory(BaseModel):
    """
    Validated price history for one instrument.

    ``history`` is never empty, holds unique dates, and is sorted ascending.
    """

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Exchange code, e.g. '510300', or 'Unknown'.")
    name: str = Field(..., description="Display (short) name of the fund.")
    history: list[PricePoint] = Field(
        ...,
        min_length=1,
        description="Daily closes sorted by date ascending.",
    )
    sources: list[Source] = Field(
        default_factory=list,
        description="Citations with a non-empty URI.",
    )


# ---------------------------------------------------------------------------
# Profile enrichment
# ---------------------------------------------------------------------------

NO_PROFILE_DESCRIPTION = "No details available for this fund."


class InstrumentProfile(BaseModel):
    """
    Descriptive fund metadata. Every field is optional; absence is a valid,
    permanent state.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    description: Optional[str] = Field(default=None, description="Short fund summary.")
    manager: Optional[str] = Field(default=None, description="Fund manager name(s).")
    fund_size: Optional[str] = Field(
        default=None, alias="fundSize", description="Assets under management, as reported."
    )
    launch_date: Optional[str] = Field(
        default=None, alias="launchDate", description="Inception date, as reported."
    )
    company: Optional[str] = Field(default=None, description="Fund management company.")
    tracking_index: Optional[str] = Field(
        default=None, alias="trackingIndex", description="Benchmark index tracked."
    )

    @field_validator("*", mode="before")
    @classmethod
    def flatten_odd_shapes(cls, value: Any) -> Any:
        # Lists of names become one string. Other containers and booleans are
        # dropped, so a single odd field never discards the rest of the profile.
        if isinstance(value, (list, tuple)):
            items = [str(v).strip() for v in value if isinstance(v, (str, int, float))]
            return ", ".join(i for i in items if i) or None
        if isinstance(value, (dict, set, bool)):
            return None
        return value

    @classmethod
    def fallback(cls) -> "InstrumentProfile":
        return cls(description=NO_PROFILE_DESCRIPTION)


class ProfileLookup(BaseModel):
    """
    Result of a profile fetch: either the parsed profile, or the fallback
    profile with ``degraded=True`` and the failure reason.
    """

    model_config = ConfigDict(frozen=True)

    profile: InstrumentProfile
    degraded: bool = False
    reason: Optional[str] = None
