"""Continuation-link walker for Key Vault listing endpoints.

Listing responses carry a page of items in ``value`` and, when more
results exist, an absolute ``nextLink`` URI for the following page.
:func:`walk_pages` follows those links until a page arrives without one,
turning every item into a :class:`~vaultclient.models.SecretIdentifier`.

A ``nextLink`` that points back at a page already fetched would loop
forever; the walker raises :class:`~vaultclient.exceptions.DecodeError`
instead.
"""

from __future__ import annotations

from typing import Callable

import httpx

from vaultclient.client.response import decode_model
from vaultclient.exceptions import DecodeError
from vaultclient.models import ListPage, SecretIdentifier
from vaultclient.output import debug


def decode_page(response: httpx.Response, require_attributes: bool = False) -> ListPage:
    """Decode one listing page.

    Args:
        response: The listing response.
        require_attributes: Reject items without an ``attributes`` object.
            Version listings need them to sort by ``updated``.

    Raises:
        ServiceError: If the response carries an error status.
        DecodeError: If the body is not a listing page.
    """
    page = decode_model(response, ListPage)
    if require_attributes:
        for item in page.items:
            if item.attributes is None:
                raise DecodeError(f"Listing item {item.id} has no attributes")
    return page


def walk_pages(
    fetch: Callable[[str], httpx.Response],
    first_uri: str,
    require_attributes: bool = True,
) -> list[SecretIdentifier]:
    """Fetch *first_uri* and every page linked from it.

    Args:
        fetch: Issues an authenticated GET for a URI, typically
            :meth:`~vaultclient.client.transport.AuthenticatedTransport.get`.
        first_uri: URI of the first page.
        require_attributes: Passed to :func:`decode_page` for every page.

    Returns:
        All identifiers, in the order the service returned them.

    Raises:
        DecodeError: If a page fails to decode or a continuation link
            repeats.
    """
    identifiers: list[SecretIdentifier] = []
    seen: set[str] = set()
    uri: str | None = first_uri

    while uri:
        if uri in seen:
            raise DecodeError(f"Continuation link repeats an earlier page: {uri}")
        seen.add(uri)

        page = decode_page(fetch(uri), require_attributes)
        identifiers.extend(SecretIdentifier.from_item(item) for item in page.items)
        debug(f"Fetched page {len(seen)} with {len(page.items)} item(s)")
        uri = page.next_link

    return identifiers
