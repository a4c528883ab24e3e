"""Scaling of per-100g nutrient facts into food, meal and daily totals."""

from collections.abc import Iterable
from datetime import date

from meal_tracker.domain.foods import CARBOHYDRATE, ENERGY, FAT, PROTEIN
from meal_tracker.domain.meals import (
    MEAL_TYPE_ORDER,
    DailyMeals,
    FoodNutrientTotals,
    MacroTotals,
    MealNutrientRow,
    MealSummary,
)

NUTRIENT_BUCKETS: dict[str, str] = {
    ENERGY: "calories",
    PROTEIN: "protein",
    CARBOHYDRATE: "carbohydrates",
    FAT: "fats",
}


def adjusted_value(value_per_100: float, quantity: float) -> float:
    """Scale a per-100g nutrient value to a logged quantity in grams."""
    return (value_per_100 / 100.0) * quantity


def aggregate_meals(rows: Iterable[MealNutrientRow]) -> dict[int, MealSummary]:
    """Group rows by meal and food, returning meals in display order.

    Meals are ordered breakfast, lunch, dinner, snack, then by id. Meals
    without foods are kept with zero totals.
    """
    meals: dict[int, MealSummary] = {}
    for row in rows:
        meal = meals.get(row.meal_id)
        if meal is None:
            meal = MealSummary(
                id=row.meal_id, meal_type=row.meal_type, meal_date=row.meal_date
            )
            meals[row.meal_id] = meal
        if row.fdc_id is None:
            continue
        food = meal.foods.get(row.fdc_id)
        if food is None:
            food = FoodNutrientTotals(
                fdc_id=row.fdc_id,
                description=row.description,
                brand=row.brand_name,
                quantity=row.quantity or 0.0,
            )
            meal.foods[row.fdc_id] = food
        _add_nutrient(food.totals, row)

    for meal in meals.values():
        for food in meal.foods.values():
            meal.totals.add(food.totals)

    ordered = sorted(meals.values(), key=_display_key)
    return {meal.id: meal for meal in ordered}


def aggregate_day(meal_date: date, rows: Iterable[MealNutrientRow]) -> DailyMeals:
    """Aggregate all meals of a date and sum their totals."""
    meals = aggregate_meals(rows)
    daily_totals = MacroTotals()
    for meal in meals.values():
        daily_totals.add(meal.totals)
    return DailyMeals(meal_date=meal_date, meals_by_id=meals, daily_totals=daily_totals)


def empty_meal() -> MealSummary:
    """Placeholder returned when a meal lookup finds nothing."""
    return MealSummary(id=None, meal_type="", meal_date=None)


def _add_nutrient(totals: MacroTotals, row: MealNutrientRow) -> None:
    bucket = NUTRIENT_BUCKETS.get(row.nutrient_name or "")
    if bucket is None or row.value is None or row.quantity is None:
        return
    amount = adjusted_value(row.value, row.quantity)
    setattr(totals, bucket, getattr(totals, bucket) + amount)


def _display_key(meal: MealSummary) -> tuple[int, int]:
    order = MEAL_TYPE_ORDER.get(meal.meal_type.lower(), len(MEAL_TYPE_ORDER))
    return order, meal.id or 0
