"""Supabase repository for meals and their denormalized nutrient rows."""

from dataclasses import dataclass
from datetime import date

from supabase import Client

from meal_tracker.adapters.supabase_support import execute, parse_date
from meal_tracker.domain.meals import MealNutrientRow, MealSlot
from meal_tracker.services.meals import MealRepository

_MEAL_ROWS_SELECT = (
    "id, meal_date, meal_type, "
    "meal_foods(quantity, food_cache(fdc_id, description, brand_name, "
    "food_nutrients(nutrient_name, value, unit_name)))"
)


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation for meals."""

    client: Client

    def list_meals_for_date(self, meal_date: date) -> list[MealSlot]:
        """Return the meals stored for a date."""
        response = execute(
            self.client.table("meals")
            .select("id, meal_date, meal_type")
            .eq("meal_date", meal_date.isoformat())
            .order("id", desc=False),
            "meal lookup",
        )
        return [_parse_slot(row) for row in response.data or []]

    def insert_meals(self, meal_date: date, meal_types: list[str]) -> list[MealSlot]:
        """Insert missing meal slots; existing (date, type) pairs are skipped."""
        if not meal_types:
            return []
        response = execute(
            self.client.table("meals").upsert(
                [
                    {"meal_date": meal_date.isoformat(), "meal_type": meal_type}
                    for meal_type in meal_types
                ],
                on_conflict="meal_date,meal_type",
                ignore_duplicates=True,
            ),
            "meal insert",
        )
        return [_parse_slot(row) for row in response.data or []]

    def get_meal(self, meal_id: int) -> MealSlot | None:
        """Return a meal by id."""
        response = execute(
            self.client.table("meals")
            .select("id, meal_date, meal_type")
            .eq("id", meal_id)
            .limit(1),
            "meal lookup",
        )
        if not response.data:
            return None
        return _parse_slot(response.data[0])

    def delete_meal(self, meal_id: int) -> MealSlot | None:
        """Delete a meal; its meal_foods rows cascade."""
        response = execute(
            self.client.table("meals").delete().eq("id", meal_id),
            "meal delete",
        )
        if not response.data:
            return None
        return _parse_slot(response.data[0])

    def list_meal_rows_for_date(self, meal_date: date) -> list[MealNutrientRow]:
        """Return meal x food x nutrient rows for a date."""
        response = execute(
            self.client.table("meals")
            .select(_MEAL_ROWS_SELECT)
            .eq("meal_date", meal_date.isoformat())
            .order("id", desc=False),
            "meal rows lookup",
        )
        return flatten_meal_rows(response.data or [])

    def list_meal_rows(self, meal_id: int) -> list[MealNutrientRow]:
        """Return meal x food x nutrient rows for one meal."""
        response = execute(
            self.client.table("meals").select(_MEAL_ROWS_SELECT).eq("id", meal_id),
            "meal rows lookup",
        )
        return flatten_meal_rows(response.data or [])


def flatten_meal_rows(meals: list[dict[str, object]]) -> list[MealNutrientRow]:
    """Flatten embedded meal resources into one row per meal x food x nutrient.

    Mirrors a left join: meals without foods and foods without nutrients still
    produce a row with the missing columns set to None.
    """
    rows: list[MealNutrientRow] = []
    for meal in meals:
        base = {
            "meal_id": int(meal["id"]),
            "meal_type": str(meal.get("meal_type") or ""),
            "meal_date": parse_date(meal.get("meal_date")),
        }
        meal_foods = meal.get("meal_foods") or []
        if not meal_foods:
            rows.append(MealNutrientRow(**base))
            continue
        for meal_food in meal_foods:
            food = meal_food.get("food_cache") or {}
            food_columns = {
                **base,
                "fdc_id": int(food["fdc_id"]) if food.get("fdc_id") else None,
                "description": food.get("description"),
                "brand_name": food.get("brand_name"),
                "quantity": _to_float(meal_food.get("quantity")),
            }
            nutrients = food.get("food_nutrients") or []
            if not nutrients:
                rows.append(MealNutrientRow(**food_columns))
                continue
            for nutrient in nutrients:
                rows.append(
                    MealNutrientRow(
                        **food_columns,
                        nutrient_name=nutrient.get("nutrient_name"),
                        value=_to_float(nutrient.get("value")),
                        unit_name=nutrient.get("unit_name"),
                    )
                )
    return rows


def _parse_slot(row: dict[str, object]) -> MealSlot:
    return MealSlot(
        id=int(row["id"]),
        meal_type=str(row.get("meal_type") or ""),
        meal_date=parse_date(row.get("meal_date")),
    )


def _to_float(value: object) -> float | None:
    if value is None:
        return None
    return float(value)
