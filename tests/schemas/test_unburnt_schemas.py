"""Tests for unburnt request validation."""
from typing import Any

import pytest
from pydantic import ValidationError

from schemas.unburnt import UnburntCreate, UnburntDraftPayload, UnburntUpdate


def valid_create(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "title": "  A title  ",
        "raw_text": "user: hi\r\n4o: hello",
        "messages": [
            {"role": "4o", "content": "hello", "order": 2},
            {"role": "USER", "content": " hi ", "order": 1},
        ],
    }
    data.update(overrides)
    return data


class TestUnburntCreate:
    def test__normalizes_fields(self) -> None:
        entry = UnburntCreate(**valid_create(tags=[" grief ", "", "Grief", "hope"]))

        assert entry.title == "A title"
        assert entry.raw_text == "user: hi\n4o: hello"
        assert entry.visibility == "private"
        assert entry.tags == ["grief", "hope"]
        assert entry.messages == [
            {"role": "user", "content": "hi", "order": 1},
            {"role": "4o", "content": "hello", "order": 2},
        ]

    def test__visibility_is_case_insensitive(self) -> None:
        assert UnburntCreate(**valid_create(visibility=" PUBLIC ")).visibility == "public"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"title": "   "},
            {"title": "x" * 121},
            {"summary": "x" * 501},
            {"raw_text": ""},
            {"messages": []},
            {"messages": [{"role": "assistant", "content": "hi", "order": 1}]},
            {"messages": [{"role": "user", "content": "", "order": 1}]},
            {"messages": [{"role": "user", "content": "hi"}]},
            {"messages": [{"role": "user", "content": "hi", "order": 2}]},
            {"messages": [{"role": "user", "content": "x" * 5001, "order": 1}]},
            {"tags": [f"tag{i}" for i in range(13)]},
            {"tags": ["x" * 25]},
            {"visibility": "friends"},
        ],
    )
    def test__rejects_invalid_input(self, overrides: dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            UnburntCreate(**valid_create(**overrides))


class TestUnburntUpdate:
    def test__requires_at_least_one_field(self) -> None:
        with pytest.raises(ValidationError):
            UnburntUpdate()

    def test__changes_only_contains_provided_fields(self) -> None:
        assert UnburntUpdate(summary="new").changes() == {"summary": "new"}

    def test__title_cannot_be_blanked(self) -> None:
        with pytest.raises(ValidationError):
            UnburntUpdate(title=" ")


class TestUnburntDraftPayload:
    def test__defaults(self) -> None:
        draft = UnburntDraftPayload()
        assert draft.mode == "create"
        assert draft.stage == "structure"
        assert draft.fragment_meta.visibility == "private"

    def test__blank_choices_fall_back_to_defaults(self) -> None:
        draft = UnburntDraftPayload(mode="", stage=None)
        assert draft.mode == "create"
        assert draft.stage == "structure"

    def test__boundaries_are_unique_and_sorted(self) -> None:
        assert UnburntDraftPayload(boundaries=[5, 2, 5, 3]).boundaries == [2, 3, 5]

    def test__boundaries_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            UnburntDraftPayload(boundaries=[0])

    def test__messages_are_renumbered_and_may_be_empty(self) -> None:
        draft = UnburntDraftPayload(
            messages=[{"role": "user", "content": ""}, {"role": "4o", "content": "x", "order": 9}],
        )
        assert [m["order"] for m in draft.messages] == [1, 2]
