"""Tests for the continuation-link walker."""

from __future__ import annotations

from typing import Any, Optional

import httpx
import pytest

from vaultclient.client.pagination import decode_page, walk_pages
from vaultclient.exceptions import DecodeError, ServiceError

BASE = "https://test-vault.vault.azure.net/secrets/rotating/versions"


def _item(version: str, updated: int) -> dict[str, Any]:
    return {
        "id": f"https://test-vault.vault.azure.net/secrets/rotating/{version}",
        "attributes": {"enabled": True, "created": updated, "updated": updated},
    }


class PagedFetcher:
    """Serves pre-built pages keyed by URI and records the URIs fetched."""

    def __init__(self, pages: dict[str, dict[str, Any]]) -> None:
        self.pages = pages
        self.fetched: list[str] = []

    def __call__(self, uri: str) -> httpx.Response:
        self.fetched.append(uri)
        return httpx.Response(200, json=self.pages[uri])


def _page(items: list[dict[str, Any]], next_link: Optional[str]) -> dict[str, Any]:
    return {"value": items, "nextLink": next_link}


class TestWalkPages:
    def test_follows_links_until_exhausted(self) -> None:
        versions = [_item(f"ver{i:02d}", 1_600_000_000 + i) for i in range(60)]
        fetcher = PagedFetcher(
            {
                BASE: _page(versions[:25], f"{BASE}?skip=25"),
                f"{BASE}?skip=25": _page(versions[25:50], f"{BASE}?skip=50"),
                f"{BASE}?skip=50": _page(versions[50:], None),
            }
        )

        identifiers = walk_pages(fetcher, BASE)

        assert len(identifiers) == 60
        assert fetcher.fetched == [BASE, f"{BASE}?skip=25", f"{BASE}?skip=50"]
        assert [i.name for i in identifiers] == [f"ver{i:02d}" for i in range(60)]
        for identifier in identifiers:
            assert identifier.id.rsplit("/", 1)[-1] == identifier.name

    def test_missing_next_link_ends_walk(self) -> None:
        fetcher = PagedFetcher({BASE: {"value": [_item("only", 1)]}})

        identifiers = walk_pages(fetcher, BASE)

        assert [i.name for i in identifiers] == ["only"]
        assert fetcher.fetched == [BASE]

    def test_empty_listing(self) -> None:
        fetcher = PagedFetcher({BASE: _page([], None)})
        assert walk_pages(fetcher, BASE) == []

    def test_self_referencing_link(self) -> None:
        fetcher = PagedFetcher({BASE: _page([_item("a", 1)], BASE)})

        with pytest.raises(DecodeError, match="repeats"):
            walk_pages(fetcher, BASE)
        assert fetcher.fetched == [BASE]

    def test_longer_cycle(self) -> None:
        second = f"{BASE}?skip=1"
        fetcher = PagedFetcher(
            {
                BASE: _page([_item("a", 1)], second),
                second: _page([_item("b", 2)], BASE),
            }
        )

        with pytest.raises(DecodeError):
            walk_pages(fetcher, BASE)
        assert fetcher.fetched == [BASE, second]

    def test_item_without_attributes_rejected(self) -> None:
        fetcher = PagedFetcher({BASE: _page([{"id": f"{BASE}/x"}], None)})

        with pytest.raises(DecodeError, match="no attributes"):
            walk_pages(fetcher, BASE)

    def test_item_without_attributes_allowed(self) -> None:
        fetcher = PagedFetcher({BASE: _page([{"id": f"{BASE}/x"}], None)})

        [identifier] = walk_pages(fetcher, BASE, require_attributes=False)
        assert identifier.name == "x"
        assert identifier.updated is None

    def test_error_page_stops_walk(self) -> None:
        def fetch(uri: str) -> httpx.Response:
            return httpx.Response(
                404, json={"error": {"code": "SecretNotFound", "message": "gone"}}
            )

        with pytest.raises(ServiceError):
            walk_pages(fetch, BASE)


class TestDecodePage:
    def test_value_not_a_list(self) -> None:
        response = httpx.Response(200, json={"value": "nope"})
        with pytest.raises(DecodeError, match="value"):
            decode_page(response)

    def test_null_next_link(self) -> None:
        page = decode_page(httpx.Response(200, json=_page([_item("a", 1)], None)))
        assert page.next_link is None
        assert len(page.items) == 1


class TestVersionOrdering:
    def test_sorted_newest_first_across_pages(self, secret_client, fake_vault) -> None:
        for i in range(60):
            fake_vault.add_version("rotating", str(i))

        versions = secret_client.get_secret_versions("rotating")

        assert len(versions) == 60
        assert len(fake_vault.requests) == 3
        updated = [v.updated for v in versions]
        assert updated == sorted(updated, reverse=True)
        for v in versions:
            assert v.id.endswith(f"/{v.name}")

    def test_ties_broken_by_id(self, secret_client, fake_vault) -> None:
        for i in range(3):
            fake_vault.add_version("rotating", str(i))
        for v in fake_vault.secrets["rotating"]:
            v["updated"] = 1_700_000_000
        fake_vault.secrets["rotating"].reverse()

        versions = secret_client.get_secret_versions("rotating")

        assert [v.name for v in versions] == ["v0001", "v0002", "v0003"]
