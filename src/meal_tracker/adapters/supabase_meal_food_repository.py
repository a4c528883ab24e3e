"""Supabase repository for foods logged into meals."""

from dataclasses import dataclass

from supabase import Client

from meal_tracker.adapters.supabase_support import execute
from meal_tracker.domain.errors import StorageError
from meal_tracker.services.ledger import MealFoodRepository


@dataclass
class SupabaseMealFoodRepository(MealFoodRepository):
    """Supabase implementation for meal food entries."""

    client: Client

    def add_quantity(self, meal_id: int, fdc_id: int, quantity: float) -> float:
        """Accumulate grams with the log_meal_food database function."""
        response = execute(
            self.client.rpc(
                "log_meal_food",
                {"p_meal_id": meal_id, "p_food_id": fdc_id, "p_quantity": quantity},
            ),
            "meal food upsert",
        )
        data = response.data
        if isinstance(data, list):
            data = data[0] if data else None
        if isinstance(data, dict):
            data = data.get("log_meal_food", data.get("quantity"))
        if data is None:
            raise StorageError("Storage meal food upsert returned no quantity")
        return float(data)

    def delete_meal_food(self, meal_id: int, fdc_id: int) -> int | None:
        """Delete a meal food entry and return its food id."""
        response = execute(
            self.client.table("meal_foods")
            .delete()
            .eq("meal_id", meal_id)
            .eq("food_id", fdc_id),
            "meal food delete",
        )
        if not response.data:
            return None
        return int(response.data[0]["food_id"])
