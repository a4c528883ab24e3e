"""Cache-through food resolution backed by USDA FDC."""

import asyncio
import logging
import weakref
from dataclasses import dataclass, field
from typing import Protocol

from meal_tracker.adapters.fdc_client import FdcClient
from meal_tracker.domain.errors import StorageError, ValidationError
from meal_tracker.domain.foods import (
    DEFAULT_SERVING_SIZE,
    DEFAULT_SERVING_UNIT,
    SOURCE_CACHE,
    SOURCE_REMOTE,
    TRACKED_NUTRIENT_IDS,
    FoodRecord,
    FoodSearchResult,
    NutrientFact,
    ResolvedFood,
)
from meal_tracker.services.cache import Cache

_logger = logging.getLogger(__name__)


class FoodCacheStore(Protocol):
    """Persistent store of food records and their nutrient facts."""

    def get(self, fdc_id: int) -> FoodRecord | None:
        """Return a cached food with its nutrients, if present."""

    def put(self, food: FoodRecord) -> bool:
        """Insert a food and its nutrients unless the id is already cached.

        Returns True when the food was newly inserted.
        """


@dataclass
class FoodResolver:
    """Resolves foods from the cache store, fetching from FDC on a miss."""

    store: FoodCacheStore
    fdc_client: FdcClient
    search_cache: Cache
    search_page_size: int = 25
    search_ttl_seconds: int = 3600
    _locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = field(
        default_factory=weakref.WeakValueDictionary, init=False, repr=False
    )

    async def resolve(self, fdc_id: int) -> ResolvedFood:
        """Return a food from the cache, or fetch it from FDC and cache it."""
        cached = self.store.get(fdc_id)
        if cached is not None:
            _logger.debug("Food cache hit: fdc_id=%s", fdc_id)
            return ResolvedFood(source=SOURCE_CACHE, food=cached)

        lock = self._locks.get(fdc_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[fdc_id] = lock
        async with lock:
            # Another task may have cached the food while we waited.
            cached = self.store.get(fdc_id)
            if cached is not None:
                return ResolvedFood(source=SOURCE_CACHE, food=cached)

            _logger.info("Food cache miss, fetching from FDC: fdc_id=%s", fdc_id)
            payload = await self.fdc_client.get_food(fdc_id)
            food = food_from_payload(payload, fallback_id=fdc_id)
            try:
                self.store.put(food)
            except StorageError:
                _logger.exception("Failed to cache food: fdc_id=%s", fdc_id)
        return ResolvedFood(source=SOURCE_REMOTE, food=food)

    async def search(self, query: str) -> list[FoodSearchResult]:
        """Search FDC foods, keeping only the tracked nutrients."""
        normalized = query.strip() if query else ""
        if not normalized:
            raise ValidationError("Query parameter is required")
        cache_key = f"fdc:search:{normalized.lower()}:{self.search_page_size}"
        cached = self.search_cache.get(cache_key)
        if isinstance(cached, list):
            return cached

        payload = await self.fdc_client.search_foods(
            normalized, page_size=self.search_page_size
        )
        results = [_search_result(food) for food in payload.get("foods", [])]
        self.search_cache.set(cache_key, results, ttl_seconds=self.search_ttl_seconds)
        _logger.info("FDC search: query=%s results=%s", normalized, len(results))
        return results


def food_from_payload(
    payload: dict[str, object], fallback_id: int | None = None
) -> FoodRecord:
    """Build a cacheable food record from an FDC food detail payload."""
    serving_size = payload.get("servingSize")
    has_real_serving = bool(serving_size)
    return FoodRecord(
        fdc_id=int(payload.get("fdcId") or fallback_id),
        description=str(payload.get("description") or ""),
        brand_name=payload.get("brandName") or None,
        serving_size_unit=(
            str(payload.get("servingSizeUnit") or DEFAULT_SERVING_UNIT)
            if has_real_serving
            else DEFAULT_SERVING_UNIT
        ),
        serving_size=float(serving_size) if has_real_serving else DEFAULT_SERVING_SIZE,
        has_real_serving=has_real_serving,
        nutrients=extract_tracked_nutrients(payload.get("foodNutrients") or []),
    )


def extract_tracked_nutrients(
    food_nutrients: list[dict[str, object]],
) -> list[NutrientFact]:
    """Keep the tracked nutrients from an FDC nutrient list.

    Accepts both the detail shape (``{"nutrient": {...}, "amount": ...}``) and
    the flat search shape (``{"nutrientId": ..., "value": ...}``). Missing
    nutrients are omitted, and only the first observation of each is kept.
    """
    facts: list[NutrientFact] = []
    seen: set[str] = set()
    for entry in food_nutrients:
        nutrient_info = entry.get("nutrient") or {}
        nutrient_id = nutrient_info.get("id") or entry.get("nutrientId")
        name = TRACKED_NUTRIENT_IDS.get(nutrient_id)
        if name is None or name in seen:
            continue
        amount = entry.get("amount")
        if amount is None:
            amount = entry.get("value")
        if amount is None:
            continue
        unit_name = nutrient_info.get("unitName") or entry.get("unitName") or ""
        facts.append(
            NutrientFact(nutrient_name=name, value=float(amount), unit_name=unit_name)
        )
        seen.add(name)
    return facts


def _search_result(food: dict[str, object]) -> FoodSearchResult:
    nutrients = extract_tracked_nutrients(food.get("foodNutrients") or [])
    return FoodSearchResult(
        fdc_id=int(food["fdcId"]),
        description=str(food.get("description") or ""),
        brand=str(food.get("brandName") or ""),
        nutrients={fact.nutrient_name: fact.value for fact in nutrients},
    )
