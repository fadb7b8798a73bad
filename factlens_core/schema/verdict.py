# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors
"""
Verdict Pydantic Models

The Verdict is the OUTPUT of the pipeline: a reliability score with its
explanation, the false claims found, and up to three supporting citations.

Key Design Principles:
1. reliability_indicator is derived from the score, never taken from upstream
2. key_claims only drive citation expansion and never leave the engine
3. SourceCitation equality is the (title, url, relevance) triple
"""

from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field

from factlens_core.schema.serialization import SchemaModel

HIGH_RELIABILITY_MIN_SCORE = 8
MEDIUM_RELIABILITY_MIN_SCORE = 5


class ReliabilityColor(str, Enum):
    """Color band shown next to the score."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def reliability_color(score: int) -> ReliabilityColor:
    if score >= HIGH_RELIABILITY_MIN_SCORE:
        return ReliabilityColor.HIGH
    if score >= MEDIUM_RELIABILITY_MIN_SCORE:
        return ReliabilityColor.MEDIUM
    return ReliabilityColor.LOW


class ReliabilityIndicator(SchemaModel):
    score: int = Field(ge=1, le=10)
    color: ReliabilityColor

    @classmethod
    def for_score(cls, score: int) -> "ReliabilityIndicator":
        return cls(score=score, color=reliability_color(score))


class FalseClaim(SchemaModel):
    claim: str = ""
    """The statement that was found to be false."""

    correction: str = ""
    """What the evidence says instead."""


class SourceCitation(SchemaModel):
    """
    A citation attached to the verdict.

    Frozen so citations are hashable; two citations are the same citation
    exactly when title, url and relevance all match.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    title: str = ""
    url: str = ""
    relevance: str = ""

    def key(self) -> tuple[str, str, str]:
        return (self.title, self.url, self.relevance)


class Verdict(SchemaModel):
    """Structured fact-check result."""

    transcription: str = ""
    """Summary (or, for images, transcription) of the analyzed content."""

    reliability_score: int = Field(ge=1, le=10)

    reliability_explanation: str = ""

    is_factual: bool

    analysis: str = ""

    false_claims: list[FalseClaim] = Field(default_factory=list)

    sources: list[SourceCitation] = Field(default_factory=list)

    key_claims: list[str] = Field(default_factory=list)
    """Claims extracted by the reasoning service; internal only."""

    reliability_indicator: ReliabilityIndicator | None = None

    def with_indicator(self) -> "Verdict":
        return self.model_copy(
            update={"reliability_indicator": ReliabilityIndicator.for_score(self.reliability_score)}
        )

    def with_sources(self, sources: list[SourceCitation]) -> "Verdict":
        return self.model_copy(update={"sources": list(sources)})

    def to_response(self) -> dict[str, Any]:
        """Boundary representation: everything except internal fields."""
        out = self.to_dict()
        out.pop("key_claims", None)
        if "reliability_indicator" not in out:
            out["reliability_indicator"] = ReliabilityIndicator.for_score(self.reliability_score).to_dict()
        return out
