"""Page/limit validation shared by the list endpoints."""

from enybot.errors import bad_request


def validate_page(page: int, limit: int) -> int:
    """Return the row offset for a 1-based page; reject page or limit below 1."""
    if page < 1 or limit < 1:
        raise bad_request("Invalid page or limit")
    return (page - 1) * limit
