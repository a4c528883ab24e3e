"""Meal slot registry and per-date meal views."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from meal_tracker.domain.meals import (
    MEAL_TYPE_ORDER,
    DailyMeals,
    MealNutrientRow,
    MealSlot,
    MealSummary,
    MealType,
)
from meal_tracker.services.aggregation import aggregate_day, aggregate_meals, empty_meal

_logger = logging.getLogger(__name__)


class MealRepository(Protocol):
    """Persistence interface for meals."""

    def list_meals_for_date(self, meal_date: date) -> list[MealSlot]:
        """Return the meals stored for a date."""

    def insert_meals(self, meal_date: date, meal_types: list[str]) -> list[MealSlot]:
        """Insert meal slots, skipping ones that already exist.

        Returns only the rows that were inserted.
        """

    def get_meal(self, meal_id: int) -> MealSlot | None:
        """Return a meal by id, if present."""

    def delete_meal(self, meal_id: int) -> MealSlot | None:
        """Delete a meal with its logged foods and return the deleted row."""

    def list_meal_rows_for_date(self, meal_date: date) -> list[MealNutrientRow]:
        """Return meal x food x nutrient rows for every meal of a date."""

    def list_meal_rows(self, meal_id: int) -> list[MealNutrientRow]:
        """Return meal x food x nutrient rows for one meal."""


@dataclass
class MealRegistry:
    """Keeps exactly one meal per canonical meal type for each date."""

    repository: MealRepository

    def ensure_meals_for_date(self, meal_date: date) -> list[MealSlot]:
        """Create any missing meal slots for a date and return all four."""
        existing = self.repository.list_meals_for_date(meal_date)
        present = {slot.meal_type.lower() for slot in existing}
        missing = [
            meal_type.value for meal_type in MealType if meal_type.value not in present
        ]
        if not missing:
            return _in_display_order(existing)

        inserted = self.repository.insert_meals(meal_date, missing)
        _logger.info(
            "Created meal slots: date=%s types=%s",
            meal_date.isoformat(),
            ",".join(slot.meal_type for slot in inserted),
        )
        if len(inserted) < len(missing):
            # A concurrent request created some of the slots first.
            return _in_display_order(self.repository.list_meals_for_date(meal_date))
        return _in_display_order([*existing, *inserted])


@dataclass
class MealViewService:
    """Read side: meals with per-food, per-meal and per-day totals."""

    registry: MealRegistry
    repository: MealRepository

    def get_daily_meals(self, meal_date: date) -> DailyMeals:
        """Return all meals of a date with totals, creating missing slots."""
        self.registry.ensure_meals_for_date(meal_date)
        rows = self.repository.list_meal_rows_for_date(meal_date)
        return aggregate_day(meal_date, rows)

    def get_meal(self, meal_id: int) -> MealSummary:
        """Return one meal with totals, or a zero-valued placeholder."""
        rows = self.repository.list_meal_rows(meal_id)
        meals = aggregate_meals(rows)
        meal = meals.get(meal_id)
        if meal is None:
            return empty_meal()
        return meal


def _in_display_order(slots: list[MealSlot]) -> list[MealSlot]:
    return sorted(
        slots,
        key=lambda slot: (
            MEAL_TYPE_ORDER.get(slot.meal_type.lower(), len(MEAL_TYPE_ORDER)),
            slot.id,
        ),
    )
