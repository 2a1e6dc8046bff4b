# Overview: Page/limit normalization shared by the list endpoints.

from __future__ import annotations

from flask import current_app


def page_args(page: int | None, limit: int | None) -> tuple[int, int]:
    """Clamp page to >= 1 and limit to [1, MAX_PAGE_SIZE], defaulting to DEFAULT_PAGE_SIZE."""
    default = current_app.config.get("DEFAULT_PAGE_SIZE", 10)
    maximum = current_app.config.get("MAX_PAGE_SIZE", 100)
    page = max(page or 1, 1)
    limit = min(max(limit or default, 1), maximum)
    return page, limit
