"""Unit tests for retrieval lookups."""

import pytest

from src.core.exceptions import CollectionServiceError, LookupFailedError
from src.core.models import HabitItem, ParsedIntent, SearchViewKind, Target
from src.services.lookup.router import LookupRouter


def _intent(target: str, *names: str) -> ParsedIntent:
    return ParsedIntent.model_validate(
        {"target": target, "retrieval": True, "items": [{"name": n} for n in names]}
    )


@pytest.fixture
def router(mock_client):
    return LookupRouter(mock_client)


async def test_inventory_lookup_sends_name_hints(router, mock_client):
    mock_client.search_inventory.return_value = {
        "success": True,
        "results": [
            {"query": {"name": "可乐"}, "matches": [{"id": 3, "name": "可乐", "quantity": 2}]},
        ],
    }

    view = await router.lookup(_intent("INVENTORY", "可乐"))

    mock_client.search_inventory.assert_awaited_once_with([{"name": "可乐"}])
    mock_client.search_habits.assert_not_awaited()
    assert view.kind is SearchViewKind.lookup
    assert [item.name for item in view.items] == ["可乐"]
    assert view.items[0].id == "3"
    assert view.message == "找到 1 条记录"


async def test_matches_flattened_in_order_without_dedup(router, mock_client):
    mock_client.search_inventory.return_value = {
        "success": True,
        "results": [
            {"matches": [{"name": "可乐"}, {"name": "零度可乐"}]},
            {"matches": []},
            {"matches": [{"name": "可乐"}]},
        ],
    }

    view = await router.lookup(_intent("INVENTORY", "可乐", "雪碧", "饮料"))

    assert [item.name for item in view.items] == ["可乐", "零度可乐", "可乐"]
    assert view.message == "找到 3 条记录"


async def test_habit_lookup_uses_habit_search(router, mock_client):
    mock_client.search_habits.return_value = {
        "success": True,
        "results": [{"matches": [{"name": "晨跑", "frequency": "每天"}]}],
    }

    view = await router.lookup(_intent("HABIT", "跑步"), language="en")

    mock_client.search_habits.assert_awaited_once_with([{"name": "跑步"}])
    mock_client.search_inventory.assert_not_awaited()
    assert view.target is Target.habit
    assert isinstance(view.items[0], HabitItem)
    assert view.message == "Found 1 records"


async def test_suggestion_target_searches_inventory(router, mock_client):
    mock_client.search_inventory.return_value = {"success": True, "results": []}
    await router.lookup(_intent("SUGGESTION", "晚饭"))
    mock_client.search_inventory.assert_awaited_once()


async def test_no_matches(router, mock_client):
    mock_client.search_inventory.return_value = {"success": True, "results": []}
    view = await router.lookup(_intent("INVENTORY", "榴莲"))
    assert view.items == []
    assert view.message == "未找到匹配"


async def test_service_failure(router, mock_client):
    mock_client.search_inventory.side_effect = CollectionServiceError(
        "search failed", category="rejected"
    )
    with pytest.raises(LookupFailedError, match="search failed"):
        await router.lookup(_intent("INVENTORY", "可乐"))


@pytest.mark.parametrize(
    "results",
    [
        [{"matches": [{"name": "可乐", "quantity": "两瓶"}]}],
        [{"matches": ["可乐"]}],
        ["可乐"],
    ],
)
async def test_malformed_reply_becomes_lookup_error(router, mock_client, results):
    mock_client.search_inventory.return_value = {"success": True, "results": results}
    with pytest.raises(LookupFailedError, match="Malformed"):
        await router.lookup(_intent("INVENTORY", "可乐"))
