"""
Manual collection edits and meal recommendations.

Edits go straight to the collection service; the coordinator folds the
confirmed result into its mirrors.
"""

from fastapi import APIRouter

from src.core.models import HabitItem, InventoryItem, MealPlan, SessionSnapshot
from src.services import orchestrator

router = APIRouter(tags=["collections"])


@router.get("/inventory", response_model=list[InventoryItem])
async def list_inventory():
    """Current inventory mirror."""
    return orchestrator.get_coordinator().projection.inventory


@router.delete("/inventory/{item_id}", response_model=SessionSnapshot)
async def delete_item(item_id: str):
    coordinator = orchestrator.get_coordinator()
    await coordinator.delete_item(item_id)
    return coordinator.snapshot()


@router.patch("/inventory/{item_id}", response_model=InventoryItem)
async def edit_item(item_id: str, fields: dict):
    """Update fields of one inventory item."""
    return await orchestrator.get_coordinator().edit_item(item_id, fields)


@router.get("/habits", response_model=list[HabitItem])
async def list_habits():
    """Current habit mirror."""
    return orchestrator.get_coordinator().projection.habits


@router.delete("/habits/{name}", response_model=SessionSnapshot)
async def delete_habit(name: str):
    coordinator = orchestrator.get_coordinator()
    await coordinator.delete_habit(name)
    return coordinator.snapshot()


@router.patch("/habits/{name}", response_model=HabitItem)
async def edit_habit(name: str, fields: dict):
    """Update fields of one habit, identified by name."""
    return await orchestrator.get_coordinator().edit_habit(name, fields)


@router.post("/meal-plan", response_model=MealPlan)
async def recommend_meals():
    """Ask for meal suggestions based on current stock and habits."""
    return await orchestrator.get_coordinator().recommend_meals()
