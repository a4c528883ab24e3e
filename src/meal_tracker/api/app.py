"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from meal_tracker.api.models import LogFoodRequest
from meal_tracker.app_logging import configure_logging
from meal_tracker.config import parse_cors_origins
from meal_tracker.containers import AppContainer
from meal_tracker.domain.errors import (
    MealTrackerError,
    NotFound,
    RemoteNotFound,
    RemoteUnavailable,
    StorageError,
    ValidationError,
)
from meal_tracker.domain.foods import FoodRecord, FoodSearchResult, ResolvedFood
from meal_tracker.domain.meals import DailyMeals, MacroTotals, MealSlot, MealSummary

_ERROR_STATUS: list[tuple[type[MealTrackerError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (RemoteNotFound, status.HTTP_404_NOT_FOUND),
    (RemoteUnavailable, status.HTTP_502_BAD_GATEWAY),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_cors_origins(container.settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MealTrackerError)
    async def handle_domain_error(
        request: Request, exc: MealTrackerError
    ) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(
                "Request failed: %s %s: %r",
                request.method,
                request.url.path,
                exc,
                exc_info=exc,
            )
        else:
            logger.info(
                "Request rejected: %s %s: %s", request.method, request.url.path, exc
            )
        return JSONResponse(
            status_code=status_code, content={"error": exc.public_message}
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info("Invalid request: %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": ValidationError.public_message},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error: %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": MealTrackerError.public_message},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/search-food")
    async def search_food(request: Request, food: str = "") -> list[dict[str, object]]:
        """Search the provider for foods matching free text."""
        state_container: AppContainer = request.app.state.container
        results = await state_container.food_resolver.search(food)
        return [_serialize_search_result(result) for result in results]

    @app.get("/food/{fdc_id}")
    async def get_food(fdc_id: int, request: Request) -> dict[str, object]:
        """Return a food from the cache, fetching it on first use."""
        state_container: AppContainer = request.app.state.container
        resolved = await state_container.food_resolver.resolve(fdc_id)
        return _serialize_resolved(resolved)

    @app.post("/log-food")
    async def log_food(payload: LogFoodRequest, request: Request) -> dict[str, object]:
        """Add grams of a food to a meal."""
        state_container: AppContainer = request.app.state.container
        logged = await state_container.meal_ledger.log_food(
            meal_id=payload.meal_id,
            fdc_id=payload.fdc_id,
            quantity=payload.quantity,
        )
        return {
            "message": "Food logged successfully!",
            "quantity": logged.quantity,
            "food": _serialize_resolved(logged.resolved),
        }

    @app.get("/meals/{meal_date}")
    def daily_meals(meal_date: date, request: Request) -> dict[str, object]:
        """Return the four meals of a date with per-meal and daily totals."""
        state_container: AppContainer = request.app.state.container
        daily = state_container.meal_view_service.get_daily_meals(meal_date)
        return _serialize_daily(daily)

    @app.get("/meals/{meal_date}/slots")
    def meal_slots(meal_date: date, request: Request) -> list[dict[str, object]]:
        """Ensure the four meal slots of a date exist and return them."""
        state_container: AppContainer = request.app.state.container
        slots = state_container.meal_registry.ensure_meals_for_date(meal_date)
        return [_serialize_slot(slot) for slot in slots]

    @app.get("/meal/{meal_id}")
    def get_meal(meal_id: int, request: Request) -> dict[str, object]:
        """Return one meal with totals; unknown ids yield an empty meal."""
        state_container: AppContainer = request.app.state.container
        meal = state_container.meal_view_service.get_meal(meal_id)
        return _serialize_meal(meal)

    @app.delete("/delete-food/{meal_id}/{fdc_id}")
    def delete_food(meal_id: int, fdc_id: int, request: Request) -> dict[str, object]:
        """Remove a food from a meal."""
        state_container: AppContainer = request.app.state.container
        deleted_id = state_container.meal_ledger.delete_food(meal_id, fdc_id)
        return {
            "message": (
                f"Food with ID {fdc_id} deleted successfully from meal {meal_id}"
            ),
            "deletedFoodId": deleted_id,
        }

    @app.delete("/delete-meal/{meal_id}")
    def delete_meal(meal_id: int, request: Request) -> dict[str, object]:
        """Delete a meal and its logged foods."""
        state_container: AppContainer = request.app.state.container
        deleted = state_container.meal_ledger.delete_meal(meal_id)
        return {
            "message": f"Meal {meal_id} was deleted",
            "deletedType": deleted.meal_type,
            "deletedDate": (
                deleted.meal_date.isoformat() if deleted.meal_date else None
            ),
        }

    return app


def _status_for(exc: MealTrackerError) -> int:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _serialize_food(food: FoodRecord) -> dict[str, object]:
    return {
        "id": food.fdc_id,
        "description": food.description,
        "brand": food.brand_name,
        "servingUnit": food.serving_size_unit,
        "servingSize": food.serving_size,
        "hasRealServing": food.has_real_serving,
        "nutrients": [
            {
                "nutrientName": nutrient.nutrient_name,
                "value": nutrient.value,
                "unitName": nutrient.unit_name,
            }
            for nutrient in food.nutrients
        ],
    }


def _serialize_resolved(resolved: ResolvedFood) -> dict[str, object]:
    return {"source": resolved.source, "food": _serialize_food(resolved.food)}


def _serialize_search_result(result: FoodSearchResult) -> dict[str, object]:
    return {
        "id": result.fdc_id,
        "description": result.description,
        "brand": result.brand,
        "nutrients": result.nutrients,
    }


def _serialize_totals(totals: MacroTotals) -> dict[str, float]:
    return {
        "calories": totals.calories,
        "carbohydrates": totals.carbohydrates,
        "protein": totals.protein,
        "fats": totals.fats,
    }


def _serialize_slot(slot: MealSlot) -> dict[str, object]:
    return {"id": slot.id, "type": slot.meal_type}


def _serialize_meal(meal: MealSummary) -> dict[str, object]:
    return {
        "id": meal.id,
        "type": meal.meal_type,
        "date": meal.meal_date.isoformat() if meal.meal_date else None,
        "foods": {
            str(fdc_id): {
                "fdcId": food.fdc_id,
                "description": food.description,
                "brand": food.brand,
                "quantity": food.quantity,
                **_serialize_totals(food.totals),
            }
            for fdc_id, food in meal.foods.items()
        },
        "totals": _serialize_totals(meal.totals),
    }


def _serialize_daily(daily: DailyMeals) -> dict[str, object]:
    return {
        "date": daily.meal_date.isoformat(),
        "mealsById": {
            str(meal_id): _serialize_meal(meal)
            for meal_id, meal in daily.meals_by_id.items()
        },
        "dailyTotals": _serialize_totals(daily.daily_totals),
    }
