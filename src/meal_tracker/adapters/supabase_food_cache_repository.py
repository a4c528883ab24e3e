"""Supabase repository for cached FDC foods."""

from dataclasses import dataclass

from supabase import Client

from meal_tracker.adapters.supabase_support import execute
from meal_tracker.domain.foods import (
    DEFAULT_SERVING_SIZE,
    DEFAULT_SERVING_UNIT,
    FoodRecord,
    NutrientFact,
)
from meal_tracker.services.foods import FoodCacheStore

_FOOD_SELECT = (
    "fdc_id, description, brand_name, serving_size_unit, serving_size, "
    "has_real_serving, food_nutrients(nutrient_name, value, unit_name)"
)


@dataclass
class SupabaseFoodCacheRepository(FoodCacheStore):
    """Supabase-backed food cache keyed by FDC id."""

    client: Client

    def get(self, fdc_id: int) -> FoodRecord | None:
        """Return a cached food with its nutrient facts."""
        response = execute(
            self.client.table("food_cache")
            .select(_FOOD_SELECT)
            .eq("fdc_id", fdc_id)
            .limit(1),
            "food lookup",
        )
        if not response.data:
            return None
        return _parse_food(response.data[0])

    def put(self, food: FoodRecord) -> bool:
        """Cache a food and its nutrients atomically with cache_food.

        Existing food rows are left as they are, while missing nutrient rows
        are always added.
        """
        response = execute(
            self.client.rpc(
                "cache_food",
                {
                    "p_food": {
                        "fdc_id": food.fdc_id,
                        "description": food.description,
                        "brand_name": food.brand_name,
                        "serving_size_unit": food.serving_size_unit,
                        "serving_size": food.serving_size,
                        "has_real_serving": food.has_real_serving,
                    },
                    "p_nutrients": [
                        {
                            "nutrient_name": nutrient.nutrient_name,
                            "value": nutrient.value,
                            "unit_name": nutrient.unit_name,
                        }
                        for nutrient in food.nutrients
                    ],
                },
            ),
            "food insert",
        )
        data = response.data
        if isinstance(data, list):
            data = data[0] if data else None
        if isinstance(data, dict):
            data = data.get("cache_food")
        return bool(data)


def _parse_food(row: dict[str, object]) -> FoodRecord:
    serving_size = row.get("serving_size")
    return FoodRecord(
        fdc_id=int(row["fdc_id"]),
        description=str(row.get("description") or ""),
        brand_name=row.get("brand_name"),
        serving_size_unit=str(row.get("serving_size_unit") or DEFAULT_SERVING_UNIT),
        serving_size=(
            float(serving_size) if serving_size is not None else DEFAULT_SERVING_SIZE
        ),
        has_real_serving=bool(row.get("has_real_serving")),
        nutrients=[
            NutrientFact(
                nutrient_name=str(nutrient["nutrient_name"]),
                value=float(nutrient.get("value") or 0.0),
                unit_name=str(nutrient.get("unit_name") or ""),
            )
            for nutrient in row.get("food_nutrients") or []
        ],
    )
