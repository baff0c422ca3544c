"""Derive a display title for a generated plan."""

from __future__ import annotations

TITLE_SCAN_LINES = 5
GENERIC_TITLE = "Business Plan"


def derive_title(plan_text: str, business_type: str) -> str:
    """Return the plan's own heading when it names the business, else a generic title.

    Only the first few non-empty lines are considered, since the LLM is asked
    to open the plan with a ``# <BUSINESS TYPE> BUSINESS: ...`` heading.
    """

    label = (business_type or "").strip()
    if not label:
        return GENERIC_TITLE

    lines = [line.strip() for line in (plan_text or "").splitlines() if line.strip()]
    for line in lines[:TITLE_SCAN_LINES]:
        if line.startswith("#") and label.lower() in line.lower():
            heading = line.lstrip("#").strip()
            if heading:
                return heading
    return f"{label} {GENERIC_TITLE}"
