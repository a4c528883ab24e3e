"""Domain models for meals, logged foods and their nutrient totals."""

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

from meal_tracker.domain.foods import ResolvedFood


class MealType(StrEnum):
    """Canonical meal slots, declared in display order."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


MEAL_TYPE_ORDER: dict[str, int] = {
    meal_type.value: index for index, meal_type in enumerate(MealType)
}


@dataclass(frozen=True)
class MealSlot:
    """A stored meal row for one date and meal type."""

    id: int
    meal_type: str
    meal_date: date | None = None


@dataclass(frozen=True)
class MealNutrientRow:
    """One row of the meal x food x nutrient read.

    Food and nutrient columns are ``None`` when a meal has no logged foods or
    a cached food has no nutrient facts.
    """

    meal_id: int
    meal_type: str
    meal_date: date
    fdc_id: int | None = None
    description: str | None = None
    brand_name: str | None = None
    quantity: float | None = None
    nutrient_name: str | None = None
    value: float | None = None
    unit_name: str | None = None


@dataclass
class MacroTotals:
    """Calories and macronutrients accumulated for a food, meal or day."""

    calories: float = 0.0
    carbohydrates: float = 0.0
    protein: float = 0.0
    fats: float = 0.0

    def add(self, other: "MacroTotals") -> None:
        """Accumulate another set of totals into this one."""
        self.calories += other.calories
        self.carbohydrates += other.carbohydrates
        self.protein += other.protein
        self.fats += other.fats


@dataclass
class FoodNutrientTotals:
    """A logged food with nutrients scaled to the logged quantity."""

    fdc_id: int
    description: str | None
    brand: str | None
    quantity: float
    totals: MacroTotals = field(default_factory=MacroTotals)


@dataclass
class MealSummary:
    """A meal with its foods keyed by FDC id and the meal totals."""

    id: int | None
    meal_type: str
    meal_date: date | None
    foods: dict[int, FoodNutrientTotals] = field(default_factory=dict)
    totals: MacroTotals = field(default_factory=MacroTotals)


@dataclass(frozen=True)
class DailyMeals:
    """All meals of a date keyed by meal id, in display order."""

    meal_date: date
    meals_by_id: dict[int, MealSummary]
    daily_totals: MacroTotals


@dataclass(frozen=True)
class LoggedFood:
    """Result of logging a food into a meal."""

    meal_id: int
    fdc_id: int
    quantity: float
    resolved: ResolvedFood


@dataclass(frozen=True)
class DeletedMeal:
    """Attributes of a meal that was deleted."""

    id: int
    meal_type: str
    meal_date: date | None
