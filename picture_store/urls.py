"""Retrieval URL construction for stored pictures."""

from uuid import UUID

DEFAULT_API_PREFIX = "/api/v1"


def pictures_path(api_prefix: str = DEFAULT_API_PREFIX) -> str:
    """Public path of the pictures collection under ``api_prefix``."""
    return f"{api_prefix.rstrip('/')}/pictures"


def build_retrieval_url(
    base_url: str,
    object_id: str | UUID,
    api_prefix: str = DEFAULT_API_PREFIX,
) -> str:
    """Build the URL a client can use to fetch a picture's bytes.

    ``base_url`` is used as given apart from a trailing slash,
    e.g. ``http://localhost:8081`` gives
    ``http://localhost:8081/api/v1/pictures/view/<id>``.
    """
    return f"{base_url.rstrip('/')}{pictures_path(api_prefix)}/view/{object_id}"
