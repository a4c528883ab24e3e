"""Logging foods into meals and removing them."""

import logging
import math
from dataclasses import dataclass
from typing import Protocol

from meal_tracker.domain.errors import NotFound, ValidationError
from meal_tracker.domain.meals import DeletedMeal, LoggedFood
from meal_tracker.services.foods import FoodResolver
from meal_tracker.services.meals import MealRepository

_logger = logging.getLogger(__name__)


class MealFoodRepository(Protocol):
    """Persistence interface for meal food associations."""

    def add_quantity(self, meal_id: int, fdc_id: int, quantity: float) -> float:
        """Atomically add grams to a meal food entry, creating it if needed.

        Returns the stored quantity after the write.
        """

    def delete_meal_food(self, meal_id: int, fdc_id: int) -> int | None:
        """Delete a meal food entry and return its food id, if it existed."""


@dataclass
class MealFoodLedger:
    """Records quantities of foods eaten in each meal."""

    repository: MealFoodRepository
    meal_repository: MealRepository
    food_resolver: FoodResolver

    async def log_food(self, meal_id: int, fdc_id: int, quantity: float) -> LoggedFood:
        """Add a quantity of a food to a meal, caching the food first."""
        if not math.isfinite(quantity) or quantity <= 0:
            raise ValidationError("Quantity must be a positive number")
        if self.meal_repository.get_meal(meal_id) is None:
            raise NotFound(f"Meal {meal_id} was not found")

        resolved = await self.food_resolver.resolve(fdc_id)
        stored = self.repository.add_quantity(meal_id, fdc_id, quantity)
        _logger.info(
            "Logged food: meal_id=%s fdc_id=%s added=%s stored=%s",
            meal_id,
            fdc_id,
            quantity,
            stored,
        )
        return LoggedFood(
            meal_id=meal_id, fdc_id=fdc_id, quantity=stored, resolved=resolved
        )

    def delete_food(self, meal_id: int, fdc_id: int) -> int:
        """Remove a food from a meal and return the removed food id."""
        deleted = self.repository.delete_meal_food(meal_id, fdc_id)
        if deleted is None:
            raise NotFound("Food or meal was not found")
        _logger.info("Deleted meal food: meal_id=%s fdc_id=%s", meal_id, deleted)
        return deleted

    def delete_meal(self, meal_id: int) -> DeletedMeal:
        """Delete a meal together with its logged foods."""
        deleted = self.meal_repository.delete_meal(meal_id)
        if deleted is None:
            raise NotFound("Meal was not found")
        _logger.info("Deleted meal: meal_id=%s", meal_id)
        return DeletedMeal(
            id=deleted.id, meal_type=deleted.meal_type, meal_date=deleted.meal_date
        )
