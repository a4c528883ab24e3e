"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from meal_tracker.adapters.fdc_client import HttpxFdcClient
from meal_tracker.adapters.supabase_food_cache_repository import (
    SupabaseFoodCacheRepository,
)
from meal_tracker.adapters.supabase_meal_food_repository import (
    SupabaseMealFoodRepository,
)
from meal_tracker.adapters.supabase_meal_repository import SupabaseMealRepository
from meal_tracker.config import Settings
from meal_tracker.services.cache import InMemoryCache
from meal_tracker.services.foods import FoodResolver
from meal_tracker.services.ledger import MealFoodLedger
from meal_tracker.services.meals import MealRegistry, MealViewService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    food_resolver: FoodResolver
    meal_registry: MealRegistry
    meal_ledger: MealFoodLedger
    meal_view_service: MealViewService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    food_cache_repository = SupabaseFoodCacheRepository(supabase_client)
    meal_repository = SupabaseMealRepository(supabase_client)
    meal_food_repository = SupabaseMealFoodRepository(supabase_client)
    fdc_client = HttpxFdcClient.create(
        api_key=resolved_settings.fdc_api_key,
        base_url=resolved_settings.fdc_base_url,
        timeout_seconds=resolved_settings.fdc_timeout_seconds,
    )
    food_resolver = FoodResolver(
        store=food_cache_repository,
        fdc_client=fdc_client,
        search_cache=InMemoryCache(),
        search_page_size=resolved_settings.search_page_size,
        search_ttl_seconds=resolved_settings.search_ttl_seconds,
    )
    meal_registry = MealRegistry(meal_repository)
    meal_ledger = MealFoodLedger(
        repository=meal_food_repository,
        meal_repository=meal_repository,
        food_resolver=food_resolver,
    )
    meal_view_service = MealViewService(
        registry=meal_registry,
        repository=meal_repository,
    )

    async def close_resources() -> None:
        await fdc_client.close()

    return AppContainer(
        settings=resolved_settings,
        food_resolver=food_resolver,
        meal_registry=meal_registry,
        meal_ledger=meal_ledger,
        meal_view_service=meal_view_service,
        close_resources=close_resources,
    )
