"""Local filtering of accident logs returned by the Procore API."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

SEARCH_FIELDS = (
    "involved_name",
    "involved_company",
    "comments",
    "location",
    "severity",
)


def matches_search(log: Mapping[str, Any], term: str) -> bool:
    """True when the term occurs, case-insensitively, in a text field of the log.

    The date is compared against the lowered term as it stands.
    """
    term = term.lower()
    for field in SEARCH_FIELDS:
        value = log.get(field)
        if isinstance(value, str) and term in value.lower():
            return True
    date = log.get("date")
    return isinstance(date, str) and term in date


def _severity_matches(log: Mapping[str, Any], severity: str) -> bool:
    value = log.get("severity")
    return isinstance(value, str) and value.casefold() == severity.casefold()


def _company_matches(log: Mapping[str, Any], company: str) -> bool:
    value = log.get("involved_company")
    return isinstance(value, str) and company.lower() in value.lower()


def filter_logs(
    logs: Iterable[Mapping[str, Any]],
    severity: str | None = None,
    company: str | None = None,
    search: str | None = None,
) -> list[Mapping[str, Any]]:
    """Keep the logs matching the severity (exact, any case) and company (substring).

    The search term is applied to the selection before the severity and
    company pass has filled it, so it never removes a log from the result.
    """
    selected: list[Mapping[str, Any]] = []
    if search:
        selected = [log for log in selected if matches_search(log, search)]
    selected.extend(
        log
        for log in logs
        if (not severity or _severity_matches(log, severity))
        and (not company or _company_matches(log, company))
    )
    return selected