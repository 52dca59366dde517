"""Locally held mirrors of the remote collections.

The coordinator is the only writer; presentation reads snapshots. Exactly
one of the default view (the mirrors) or the search view is visible at a
time: ``search_view is None`` means the default view is showing.
"""

from dataclasses import dataclass, field

from src.core.models import HabitItem, InventoryItem, MealPlan, SearchView


@dataclass
class ProjectionState:
    """Inventory and habit mirrors plus the transient search view."""

    inventory: list[InventoryItem] = field(default_factory=list)
    habits: list[HabitItem] = field(default_factory=list)
    search_view: SearchView | None = None
    meal_plan: MealPlan | None = None

    @property
    def showing_search(self) -> bool:
        return self.search_view is not None

    def show(self, view: SearchView) -> None:
        self.search_view = view

    def return_to_default(self) -> None:
        """Hide the search view; the mirrors are left as they are."""
        self.search_view = None

    def replace_inventory(self, items: list[InventoryItem]) -> None:
        self.inventory = list(items)

    def replace_habits(self, habits: list[HabitItem]) -> None:
        self.habits = list(habits)

    # -- single-entry edits confirmed by the service --

    def remove_item(self, item_id: str) -> None:
        self.inventory = [item for item in self.inventory if item.id != item_id]

    def upsert_item(self, item: InventoryItem) -> None:
        for index, existing in enumerate(self.inventory):
            if existing.id == item.id:
                self.inventory[index] = item
                return
        self.inventory.append(item)

    def remove_habit(self, name: str) -> None:
        self.habits = [habit for habit in self.habits if habit.name != name]

    def upsert_habit(self, habit: HabitItem, previous_name: str | None = None) -> None:
        key = previous_name or habit.name
        for index, existing in enumerate(self.habits):
            if existing.name == key:
                self.habits[index] = habit
                return
        self.habits.append(habit)
