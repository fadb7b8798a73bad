# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

"""
Trusted Source Directory
========================
Ordered registry of vetted domains and their site-search URL templates.

Order is trust ranking and is preserved everywhere:
- fact_checking: IFCN-style fact-checkers
- news: wire services and major newsrooms
- science_and_health: journals and health authorities
- academic: scholarly indexes
- government: primary public records
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

from factlens_core.schema.verdict import SourceCitation
from factlens_core.tools.url_utils import encode_query_component

QUERY_PLACEHOLDER = "{query}"


@dataclass(frozen=True)
class TrustedSourceTemplate:
    domain: str
    title: str
    search_url_template: str
    category: str = "news"

    def search_url(self, claim: str) -> str:
        return self.search_url_template.replace(QUERY_PLACEHOLDER, encode_query_component(claim))

    def candidate_for(self, claim: str) -> SourceCitation:
        return SourceCitation(
            title=f"{self.title} fact-check results",
            url=self.search_url(claim),
            relevance=f"Fact-check results from {self.title}",
        )


_DEFAULT_ENTRIES: tuple[TrustedSourceTemplate, ...] = (
    # Fact-checking organizations
    TrustedSourceTemplate("factcheck.org", "FactCheck.org", "https://www.factcheck.org/?s={query}", "fact_checking"),
    TrustedSourceTemplate("snopes.com", "Snopes", "https://www.snopes.com/?s={query}", "fact_checking"),
    TrustedSourceTemplate("politifact.com", "PolitiFact", "https://www.politifact.com/search/?q={query}", "fact_checking"),
    TrustedSourceTemplate("fullfact.org", "Full Fact UK", "https://fullfact.org/search/?q={query}", "fact_checking"),
    TrustedSourceTemplate("afp.com", "AFP Fact Check", "https://factcheck.afp.com/search?keyword={query}", "fact_checking"),
    TrustedSourceTemplate("aap.com.au", "AAP FactCheck", "https://www.aap.com.au/search/{query}/", "fact_checking"),
    TrustedSourceTemplate("leadstories.com", "Lead Stories", "https://leadstories.com/?s={query}", "fact_checking"),
    TrustedSourceTemplate("checkyourfact.com", "Check Your Fact", "https://checkyourfact.com/?s={query}", "fact_checking"),
    TrustedSourceTemplate("truthorfiction.com", "TruthOrFiction", "https://www.truthorfiction.com/?s={query}", "fact_checking"),
    TrustedSourceTemplate("healthfeedback.org", "Health Feedback", "https://healthfeedback.org/?s={query}", "fact_checking"),
    TrustedSourceTemplate("science.feedback.org", "Science Feedback", "https://science.feedback.org/?s={query}", "fact_checking"),
    # Wire services and major newsrooms
    TrustedSourceTemplate("reuters.com", "Reuters", "https://www.reuters.com/search/news?blob={query}"),
    TrustedSourceTemplate("apnews.com", "Associated Press", "https://apnews.com/search?q={query}&searchBy=text"),
    TrustedSourceTemplate("bbc.com", "BBC News", "https://www.bbc.com/search?q={query}&d=news"),
    TrustedSourceTemplate("npr.org", "NPR", "https://www.npr.org/search?query={query}&page=1"),
    TrustedSourceTemplate(
        "nytimes.com", "The New York Times", "https://www.nytimes.com/search?dropmab=true&query={query}&sort=best"
    ),
    TrustedSourceTemplate(
        "washingtonpost.com",
        "The Washington Post",
        "https://www.washingtonpost.com/search/?query={query}&facets=%7B%22time%22%3A%22all%22%7D",
    ),
    TrustedSourceTemplate(
        "wsj.com", "Wall Street Journal", "https://www.wsj.com/search?query={query}&isToggleOn=true&operator=AND"
    ),
    TrustedSourceTemplate("theguardian.com", "The Guardian", "https://www.theguardian.com/search?q={query}"),
    TrustedSourceTemplate("economist.com", "The Economist", "https://www.economist.com/search?q={query}"),
    TrustedSourceTemplate("bloomberg.com", "Bloomberg", "https://www.bloomberg.com/search?query={query}"),
    # Science and health
    TrustedSourceTemplate("nature.com", "Nature", "https://www.nature.com/search?q={query}", "science_and_health"),
    TrustedSourceTemplate(
        "science.org", "Science", "https://www.science.org/action/doSearch?q={query}", "science_and_health"
    ),
    TrustedSourceTemplate(
        "sciencedirect.com", "ScienceDirect", "https://www.sciencedirect.com/search?qs={query}", "science_and_health"
    ),
    TrustedSourceTemplate(
        "who.int",
        "World Health Organization",
        "https://www.who.int/home/search?indexCatalogue=genericsearchindex1&searchQuery={query}",
        "science_and_health",
    ),
    TrustedSourceTemplate("cdc.gov", "CDC", "https://search.cdc.gov/search?query={query}", "science_and_health"),
    TrustedSourceTemplate(
        "nih.gov", "National Institutes of Health", "https://search.nih.gov/search?affiliate=nih&query={query}",
        "science_and_health",
    ),
    # Academic
    TrustedSourceTemplate("scholar.google.com", "Google Scholar", "https://scholar.google.com/scholar?q={query}", "academic"),
    TrustedSourceTemplate(
        "jstor.org", "JSTOR", "https://www.jstor.org/action/doBasicSearch?Query={query}", "academic"
    ),
    # Government
    TrustedSourceTemplate("congress.gov", "Congress.gov", "https://www.congress.gov/search?q={query}", "government"),
    TrustedSourceTemplate("usa.gov", "USA.gov", "https://search.usa.gov/search?query={query}", "government"),
)


@dataclass(frozen=True)
class SourceDirectory:
    """
    Immutable, ordered collection of trusted source templates.

    Built once at startup and shared read-only; pass a substitute instance
    to the expander to change which domains are consulted.
    """

    entries: tuple[TrustedSourceTemplate, ...]

    def __post_init__(self) -> None:
        entries = tuple(self.entries)
        for entry in entries:
            if not entry.domain or not entry.title:
                raise ValueError(f"Trusted source entry needs a domain and a title: {entry!r}")
            if QUERY_PLACEHOLDER not in entry.search_url_template:
                raise ValueError(f"Search URL template for {entry.domain} lacks {QUERY_PLACEHOLDER}")
        object.__setattr__(self, "entries", entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[TrustedSourceTemplate]:
        return iter(self.entries)

    def domains(self) -> list[str]:
        return [e.domain for e in self.entries]

    def candidates_for(self, claim: str) -> list[SourceCitation]:
        """One candidate citation per entry, in directory order."""
        return [entry.candidate_for(claim) for entry in self.entries]

    @classmethod
    def default(cls) -> "SourceDirectory":
        return cls(_DEFAULT_ENTRIES)

    @classmethod
    def from_records(cls, records: list[dict[str, Any]]) -> "SourceDirectory":
        entries = []
        for rec in records:
            if not isinstance(rec, dict):
                raise ValueError(f"Trusted source record must be an object, got {type(rec).__name__}")
            entries.append(TrustedSourceTemplate(
                domain=str(rec.get("domain") or "").strip().lower(),
                title=str(rec.get("title") or "").strip(),
                search_url_template=str(rec.get("search_url") or rec.get("search_url_template") or "").strip(),
                category=str(rec.get("category") or "news").strip(),
            ))
        return cls(tuple(entries))

    @classmethod
    def from_file(cls, path: str | Path) -> "SourceDirectory":
        """Load a JSON list of {domain, title, search_url, category} records."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if isinstance(data, dict) and "sources" in data:
            data = data["sources"]
        if not isinstance(data, list):
            raise ValueError("Trusted source file must contain a list or {sources: [...]}")
        return cls.from_records(data)
