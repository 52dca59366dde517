"""Unit tests for the commit executor."""

import pytest

from src.core.exceptions import CollectionServiceError, CommitError
from src.core.models import HabitItem, InventoryItem, ParsedIntent, SearchViewKind
from src.services.commit.executor import CommitExecutor
from src.services.projection import ProjectionState


def _intent(target: str, items: list[dict]) -> ParsedIntent:
    return ParsedIntent.model_validate({"target": target, "items": items})


@pytest.fixture
def projection():
    return ProjectionState(
        inventory=[InventoryItem(id="1", name="牛奶", quantity=1)],
        habits=[HabitItem(name="晨跑")],
    )


@pytest.fixture
def executor(mock_client, projection):
    return CommitExecutor(mock_client, projection)


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------


async def test_inventory_commit_sends_item_payloads(executor, mock_client):
    mock_client.update_inventory.return_value = {
        "success": True,
        "items": [{"id": 9, "name": "可乐", "quantity": 2, "unit": "瓶"}],
        "changes": [{"type": "ADD", "name": "可乐", "desc": "+2 瓶"}],
        "message": "ok",
    }

    outcome = await executor.commit(
        _intent("INVENTORY", [{"name": "可乐", "quantity": 2, "unit": "瓶", "action": "ADD"}])
    )
    await executor.drain()

    mock_client.update_inventory.assert_awaited_once_with(
        [{"name": "可乐", "quantity": 2.0, "unit": "瓶", "action": "ADD"}]
    )
    assert outcome.view.kind is SearchViewKind.commit_result
    assert [item.name for item in outcome.view.items] == ["可乐"]
    assert outcome.view.changes[0].desc == "+2 瓶"
    assert outcome.view.message == "已更新 1 项物品"
    assert outcome.service_message == "ok"
    mock_client.list_inventory.assert_awaited_once()


async def test_inventory_items_fall_back_to_changes(executor, mock_client):
    mock_client.update_inventory.return_value = {
        "success": True,
        "changes": [
            {"type": "ADD", "name": "可乐", "expire_date": "2027-01-01"},
            {"type": "ADD", "name": "雪碧"},
        ],
    }

    outcome = await executor.commit(_intent("INVENTORY", [{"name": "可乐"}, {"name": "雪碧"}]))

    assert [item.name for item in outcome.view.items] == ["可乐", "雪碧"]
    assert outcome.view.items[0].expire_date == "2027-01-01"
    assert outcome.view.message == "已更新 2 项物品"


async def test_commit_does_not_touch_mirrors_before_fold(executor, mock_client, projection):
    mock_client.update_inventory.return_value = {"success": True, "items": [{"name": "可乐"}]}
    mock_client.list_inventory.side_effect = CollectionServiceError("down", category="connection")

    outcome = await executor.commit(_intent("INVENTORY", [{"name": "可乐"}]))
    await executor.drain()

    assert projection.search_view is None
    assert [item.name for item in projection.inventory] == ["牛奶"]

    executor.fold(outcome)
    assert projection.search_view is outcome.view


async def test_inventory_failure_still_refreshes(executor, mock_client, projection):
    mock_client.update_inventory.side_effect = CollectionServiceError(
        "update rejected", category="rejected"
    )
    mock_client.list_inventory.return_value = [{"id": 1, "name": "牛奶", "quantity": 3}]

    with pytest.raises(CommitError, match="update rejected"):
        await executor.commit(_intent("INVENTORY", [{"name": "可乐"}]))
    await executor.drain()

    mock_client.list_inventory.assert_awaited_once()
    assert projection.inventory[0].quantity == 3


# ---------------------------------------------------------------------------
# Habits
# ---------------------------------------------------------------------------


async def test_habit_commit_replaces_mirror_on_fold(executor, mock_client, projection):
    mock_client.update_habits.return_value = {
        "success": True,
        "habits": [{"name": "晨跑"}, {"name": "喝水", "frequency": "每天"}],
    }

    outcome = await executor.commit(_intent("HABIT", [{"name": "喝水", "frequency": "每天"}]))
    await executor.drain()

    mock_client.update_habits.assert_awaited_once_with([{"name": "喝水", "frequency": "每天"}])
    mock_client.update_inventory.assert_not_awaited()
    mock_client.list_inventory.assert_not_awaited()
    assert outcome.view.message == "已更新 2 项习惯"

    executor.fold(outcome)
    assert [habit.name for habit in projection.habits] == ["晨跑", "喝水"]


async def test_habit_commit_without_habits_refreshes(executor, mock_client, projection):
    mock_client.update_habits.return_value = {
        "success": True,
        "changes": [{"type": "ADD", "name": "喝水"}],
    }
    mock_client.list_habits.return_value = [{"name": "晨跑"}, {"name": "喝水"}]

    outcome = await executor.commit(_intent("HABIT", [{"name": "喝水"}]))
    await executor.drain()

    assert outcome.habits is None
    assert outcome.view.message == "已更新 1 项习惯"
    mock_client.list_habits.assert_awaited_once()
    assert [habit.name for habit in projection.habits] == ["晨跑", "喝水"]


async def test_habit_failure(executor, mock_client, projection):
    mock_client.update_habits.side_effect = CollectionServiceError("nope", category="http")
    with pytest.raises(CommitError):
        await executor.commit(_intent("HABIT", [{"name": "喝水"}]))
    assert [habit.name for habit in projection.habits] == ["晨跑"]


# ---------------------------------------------------------------------------
# Malformed replies
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "body",
    [
        {"success": True, "items": [{"name": "可乐", "quantity": "两瓶"}]},
        {"success": True, "items": 3},
        {"success": True, "changes": ["ADD 可乐"]},
    ],
)
async def test_malformed_inventory_reply(executor, mock_client, projection, body):
    mock_client.update_inventory.return_value = body

    with pytest.raises(CommitError, match="Malformed inventory"):
        await executor.commit(_intent("INVENTORY", [{"name": "可乐"}]))
    await executor.drain()

    mock_client.list_inventory.assert_awaited_once()
    assert projection.search_view is None


async def test_malformed_habit_reply_refreshes(executor, mock_client, projection):
    mock_client.update_habits.return_value = {"success": True, "habits": [{"name": 7}]}
    mock_client.list_habits.return_value = [{"name": "晨跑"}, {"name": "喝水"}]

    with pytest.raises(CommitError, match="Malformed habit"):
        await executor.commit(_intent("HABIT", [{"name": "喝水"}]))
    await executor.drain()

    assert [habit.name for habit in projection.habits] == ["晨跑", "喝水"]
