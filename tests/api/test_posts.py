"""Tests for the ember and trace endpoints."""
from urllib.parse import quote

import pytest
from httpx import AsyncClient

from core.identity import ANON_USER_COOKIE, encode_draft_cookie, is_uuid_like
from services.post_service import DEFAULT_DISPLAY_NAME
from tests.conftest import (
    VISITOR_ID,
    InMemoryArtifactStore,
    cookie_value,
    set_cookie_headers,
    use_cookies,
)

FEEDS = [
    ("/api/embers", "bye4o_ember_name", "bye4o_ember_draft"),
    ("/api/traces", "bye4o_trace_name", "bye4o_trace_draft"),
]


@pytest.mark.parametrize(("path", "name_cookie", "draft_cookie"), FEEDS)
class TestCreatePost:
    async def test__first_post__mints_visitor_and_uses_default_name(
        self, client: AsyncClient, path: str, name_cookie: str, draft_cookie: str,
    ) -> None:
        response = await client.post(path, json={"message": "  goodbye  "})

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "goodbye"
        assert data["display_name"] == DEFAULT_DISPLAY_NAME
        assert is_uuid_like(cookie_value(response, ANON_USER_COOKIE))
        assert name_cookie not in set_cookie_headers(response)

    async def test__submitted_name__is_remembered_and_draft_cleared(
        self, client: AsyncClient, path: str, name_cookie: str, draft_cookie: str,
    ) -> None:
        use_cookies(client, **{ANON_USER_COOKIE: VISITOR_ID})
        response = await client.post(path, json={"display_name": "旅人", "message": "hi"})

        assert response.status_code == 201
        assert response.json()["display_name"] == "旅人"
        assert cookie_value(response, name_cookie) == quote("旅人", safe="")
        assert "Max-Age=0" in set_cookie_headers(response)[draft_cookie]
        assert ANON_USER_COOKIE not in set_cookie_headers(response)

    async def test__blank_name__falls_back_to_remembered_name(
        self, client: AsyncClient, path: str, name_cookie: str, draft_cookie: str,
    ) -> None:
        use_cookies(
            client,
            **{ANON_USER_COOKIE: VISITOR_ID, name_cookie: quote("Ada Lovelace", safe="")},
        )
        response = await client.post(path, json={"display_name": "  ", "message": "hi"})

        assert response.json()["display_name"] == "Ada Lovelace"

    async def test__invalid_message__is_rejected(
        self, client: AsyncClient, path: str, name_cookie: str, draft_cookie: str,
    ) -> None:
        response = await client.post(path, json={"message": "x" * 221})
        assert response.status_code == 422


async def test__list_embers__pages_newest_first(visitor_client: AsyncClient) -> None:
    for index in range(3):
        await visitor_client.post("/api/embers", json={"message": f"message {index}"})

    first = (await visitor_client.get("/api/embers", params={"limit": "2"})).json()
    assert [item["message"] for item in first["items"]] == ["message 2", "message 1"]
    assert first["next_cursor"]

    second = (
        await visitor_client.get(
            "/api/embers", params={"limit": "2", "cursor": first["next_cursor"]},
        )
    ).json()
    assert [item["message"] for item in second["items"]] == ["message 0"]


async def test__list_embers__tolerates_bad_params(visitor_client: AsyncClient) -> None:
    await visitor_client.post("/api/embers", json={"message": "only"})

    response = await visitor_client.get("/api/embers", params={"limit": "lots", "cursor": "??"})

    assert response.status_code == 200
    assert [item["message"] for item in response.json()["items"]] == ["only"]


async def test__traces_are_archived(
    visitor_client: AsyncClient, artifact_store: InMemoryArtifactStore,
) -> None:
    response = await visitor_client.post("/api/traces", json={"message": "keep me"})
    trace = response.json()

    day = trace["created_at"][:10]
    assert artifact_store.puts == [f"traces/{day}/{trace['id']}.json"]


async def test__embers_are_not_archived(
    visitor_client: AsyncClient, artifact_store: InMemoryArtifactStore,
) -> None:
    await visitor_client.post("/api/embers", json={"message": "fleeting"})
    assert artifact_store.puts == []


class TestSession:
    async def test__get_session__empty_draft(self, visitor_client: AsyncClient) -> None:
        response = await visitor_client.get("/api/embers/session")

        assert response.json() == {
            "anon_user_id": VISITOR_ID,
            "draft": {"display_name": "", "message": ""},
        }

    async def test__put_session__stores_draft_cookie(self, visitor_client: AsyncClient) -> None:
        response = await visitor_client.put(
            "/api/embers/session", json={"display_name": "Ada", "message": "half"},
        )

        assert response.json()["draft"] == {"display_name": "Ada", "message": "half"}
        raw_draft = cookie_value(response, "bye4o_ember_draft")
        assert raw_draft is not None

        use_cookies(
            visitor_client,
            **{
                ANON_USER_COOKIE: VISITOR_ID,
                "bye4o_ember_draft": raw_draft,
                "bye4o_ember_name": cookie_value(response, "bye4o_ember_name") or "",
            },
        )
        restored = (await visitor_client.get("/api/embers/session")).json()
        assert restored["draft"] == {"display_name": "Ada", "message": "half"}

    async def test__put_session__partial_update_keeps_other_field(
        self, visitor_client: AsyncClient,
    ) -> None:
        use_cookies(
            visitor_client,
            **{
                ANON_USER_COOKIE: VISITOR_ID,
                "bye4o_trace_draft": encode_draft_cookie({"display_name": "", "message": "old"}),
                "bye4o_trace_name": "Lin",
            },
        )
        response = await visitor_client.put("/api/traces/session", json={"message": "new"})

        assert response.json()["draft"] == {"display_name": "Lin", "message": "new"}

    async def test__put_session__empty_draft_clears_cookies(
        self, visitor_client: AsyncClient,
    ) -> None:
        response = await visitor_client.put(
            "/api/embers/session", json={"display_name": "", "message": ""},
        )

        cookies = set_cookie_headers(response)
        assert "Max-Age=0" in cookies["bye4o_ember_draft"]
        assert "Max-Age=0" in cookies["bye4o_ember_name"]

    async def test__put_session__requires_a_field(self, visitor_client: AsyncClient) -> None:
        response = await visitor_client.put("/api/embers/session", json={})
        assert response.status_code == 422

    async def test__get_session__ignores_corrupt_draft(self, visitor_client: AsyncClient) -> None:
        visitor_client.cookies.set("bye4o_ember_draft", "corrupt!")
        response = await visitor_client.get("/api/embers/session")

        assert response.status_code == 200
        assert response.json()["draft"]["message"] == ""
