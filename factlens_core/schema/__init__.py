# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors
"""
FactLens Core Schema Module

- Content: ContentRequest, NormalizedContent, ImagePart
- Verdict: Verdict, FalseClaim, SourceCitation, ReliabilityIndicator
"""

from factlens_core.schema.content import (
    ContentKind,
    ContentRequest,
    ImagePart,
    NormalizedContent,
)
from factlens_core.schema.serialization import SchemaModel
from factlens_core.schema.verdict import (
    FalseClaim,
    ReliabilityColor,
    ReliabilityIndicator,
    SourceCitation,
    Verdict,
    reliability_color,
)

__all__ = [
    "ContentKind",
    "ContentRequest",
    "ImagePart",
    "NormalizedContent",
    "SchemaModel",
    "FalseClaim",
    "ReliabilityColor",
    "ReliabilityIndicator",
    "SourceCitation",
    "Verdict",
    "reliability_color",
]
