"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import date

import pytest

from meal_tracker.adapters.fdc_client import FdcClient
from meal_tracker.config import Settings
from meal_tracker.containers import AppContainer
from meal_tracker.domain.foods import FoodRecord
from meal_tracker.domain.meals import MealNutrientRow, MealSlot
from meal_tracker.services.cache import InMemoryCache
from meal_tracker.services.foods import FoodCacheStore, FoodResolver
from meal_tracker.services.ledger import MealFoodLedger, MealFoodRepository
from meal_tracker.services.meals import MealRegistry, MealRepository, MealViewService


def food_payload(
    fdc_id: int = 111,
    description: str = "Apples, raw, with skin",
    energy: float | None = 52,
    protein: float | None = 0.3,
    carbs: float | None = 13.8,
    fat: float | None = 0.2,
    serving_size: float | None = None,
) -> dict[str, object]:
    """Build an FDC food detail payload."""
    nutrients = []
    for nutrient_id, name, unit, amount in (
        (1008, "Energy", "kcal", energy),
        (1003, "Protein", "g", protein),
        (1005, "Carbohydrate, by difference", "g", carbs),
        (1004, "Total lipid (fat)", "g", fat),
    ):
        if amount is not None:
            nutrients.append(
                {
                    "nutrient": {"id": nutrient_id, "name": name, "unitName": unit},
                    "amount": amount,
                }
            )
    nutrients.append(
        {
            "nutrient": {"id": 1087, "name": "Calcium, Ca", "unitName": "mg"},
            "amount": 6,
        }
    )
    payload: dict[str, object] = {
        "fdcId": fdc_id,
        "description": description,
        "dataType": "SR Legacy",
        "foodNutrients": nutrients,
    }
    if serving_size is not None:
        payload["servingSize"] = serving_size
        payload["servingSizeUnit"] = "g"
    return payload


@dataclass
class CountingFdcClient(FdcClient):
    """Fake FDC client that counts calls and serves canned payloads."""

    foods: dict[int, dict[str, object]] = field(
        default_factory=lambda: {111: food_payload()}
    )
    search_payload: dict[str, object] = field(
        default_factory=lambda: {
            "foods": [
                {
                    "fdcId": 222,
                    "description": "Cheddar cheese",
                    "brandName": "Tillamook",
                    "foodNutrients": [
                        {
                            "nutrientId": 1008,
                            "nutrientName": "Energy",
                            "unitName": "KCAL",
                            "value": 400,
                        },
                        {
                            "nutrientId": 1008,
                            "nutrientName": "Energy",
                            "unitName": "kJ",
                            "value": 1674,
                        },
                        {
                            "nutrientId": 1003,
                            "nutrientName": "Protein",
                            "unitName": "G",
                            "value": 25,
                        },
                        {
                            "nutrientId": 1093,
                            "nutrientName": "Sodium, Na",
                            "unitName": "MG",
                            "value": 600,
                        },
                    ],
                },
                {"fdcId": 333, "description": "Cheese sauce", "foodNutrients": []},
            ]
        }
    )
    food_calls: int = 0
    search_calls: int = 0
    error: Exception | None = None

    async def search_foods(self, query: str, page_size: int = 25) -> dict[str, object]:
        self.search_calls += 1
        if self.error is not None:
            raise self.error
        return self.search_payload

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        self.food_calls += 1
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.foods[fdc_id]


@dataclass
class InMemoryFoodCacheStore(FoodCacheStore):
    """In-memory food cache for tests."""

    foods: dict[int, FoodRecord] = field(default_factory=dict)
    writes: int = 0
    error: Exception | None = None

    def get(self, fdc_id: int) -> FoodRecord | None:
        return self.foods.get(fdc_id)

    def put(self, food: FoodRecord) -> bool:
        self.writes += 1
        if self.error is not None:
            raise self.error
        if food.fdc_id in self.foods:
            return False
        self.foods[food.fdc_id] = food
        return True


@dataclass
class InMemoryMealFoodRepository(MealFoodRepository):
    """In-memory meal food entries keyed by (meal id, food id)."""

    entries: dict[tuple[int, int], float] = field(default_factory=dict)

    def add_quantity(self, meal_id: int, fdc_id: int, quantity: float) -> float:
        key = (meal_id, fdc_id)
        self.entries[key] = self.entries.get(key, 0.0) + quantity
        return self.entries[key]

    def delete_meal_food(self, meal_id: int, fdc_id: int) -> int | None:
        if self.entries.pop((meal_id, fdc_id), None) is None:
            return None
        return fdc_id


@dataclass
class InMemoryMealRepository(MealRepository):
    """In-memory meals joined against the in-memory food cache and entries."""

    food_store: InMemoryFoodCacheStore
    meal_foods: InMemoryMealFoodRepository
    meals: dict[int, MealSlot] = field(default_factory=dict)
    inserted: list[MealSlot] = field(default_factory=list)
    next_id: int = 1

    def add_meal(self, meal_date: date, meal_type: str) -> MealSlot:
        slot = MealSlot(id=self.next_id, meal_type=meal_type, meal_date=meal_date)
        self.meals[slot.id] = slot
        self.next_id += 1
        return slot

    def list_meals_for_date(self, meal_date: date) -> list[MealSlot]:
        return [slot for slot in self.meals.values() if slot.meal_date == meal_date]

    def insert_meals(self, meal_date: date, meal_types: list[str]) -> list[MealSlot]:
        present = {slot.meal_type for slot in self.list_meals_for_date(meal_date)}
        created = []
        for meal_type in meal_types:
            if meal_type in present:
                continue
            slot = self.add_meal(meal_date, meal_type)
            self.inserted.append(slot)
            created.append(slot)
        return created

    def get_meal(self, meal_id: int) -> MealSlot | None:
        return self.meals.get(meal_id)

    def delete_meal(self, meal_id: int) -> MealSlot | None:
        slot = self.meals.pop(meal_id, None)
        if slot is None:
            return None
        for key in [key for key in self.meal_foods.entries if key[0] == meal_id]:
            del self.meal_foods.entries[key]
        return slot

    def list_meal_rows_for_date(self, meal_date: date) -> list[MealNutrientRow]:
        rows: list[MealNutrientRow] = []
        for slot in self.list_meals_for_date(meal_date):
            rows.extend(self._rows_for(slot))
        return rows

    def list_meal_rows(self, meal_id: int) -> list[MealNutrientRow]:
        slot = self.meals.get(meal_id)
        if slot is None:
            return []
        return self._rows_for(slot)

    def _rows_for(self, slot: MealSlot) -> list[MealNutrientRow]:
        base = {
            "meal_id": slot.id,
            "meal_type": slot.meal_type,
            "meal_date": slot.meal_date,
        }
        entries = [
            (fdc_id, quantity)
            for (meal_id, fdc_id), quantity in self.meal_foods.entries.items()
            if meal_id == slot.id
        ]
        if not entries:
            return [MealNutrientRow(**base)]
        rows = []
        for fdc_id, quantity in entries:
            food = self.food_store.foods[fdc_id]
            food_columns = {
                **base,
                "fdc_id": fdc_id,
                "description": food.description,
                "brand_name": food.brand_name,
                "quantity": quantity,
            }
            if not food.nutrients:
                rows.append(MealNutrientRow(**food_columns))
            for nutrient in food.nutrients:
                rows.append(
                    MealNutrientRow(
                        **food_columns,
                        nutrient_name=nutrient.nutrient_name,
                        value=nutrient.value,
                        unit_name=nutrient.unit_name,
                    )
                )
        return rows


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        fdc_api_key="fdc-key",
    )


@pytest.fixture
def fdc_client() -> CountingFdcClient:
    return CountingFdcClient()


@pytest.fixture
def food_store() -> InMemoryFoodCacheStore:
    return InMemoryFoodCacheStore()


@pytest.fixture
def meal_food_repository() -> InMemoryMealFoodRepository:
    return InMemoryMealFoodRepository()


@pytest.fixture
def meal_repository(
    food_store: InMemoryFoodCacheStore,
    meal_food_repository: InMemoryMealFoodRepository,
) -> InMemoryMealRepository:
    return InMemoryMealRepository(
        food_store=food_store, meal_foods=meal_food_repository
    )


@pytest.fixture
def food_resolver(
    food_store: InMemoryFoodCacheStore, fdc_client: CountingFdcClient
) -> FoodResolver:
    return FoodResolver(
        store=food_store, fdc_client=fdc_client, search_cache=InMemoryCache()
    )


@pytest.fixture
def meal_registry(meal_repository: InMemoryMealRepository) -> MealRegistry:
    return MealRegistry(meal_repository)


@pytest.fixture
def meal_ledger(
    meal_food_repository: InMemoryMealFoodRepository,
    meal_repository: InMemoryMealRepository,
    food_resolver: FoodResolver,
) -> MealFoodLedger:
    return MealFoodLedger(
        repository=meal_food_repository,
        meal_repository=meal_repository,
        food_resolver=food_resolver,
    )


@pytest.fixture
def meal_view_service(
    meal_registry: MealRegistry, meal_repository: InMemoryMealRepository
) -> MealViewService:
    return MealViewService(registry=meal_registry, repository=meal_repository)


@pytest.fixture
def container(
    settings: Settings,
    food_resolver: FoodResolver,
    meal_registry: MealRegistry,
    meal_ledger: MealFoodLedger,
    meal_view_service: MealViewService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        food_resolver=food_resolver,
        meal_registry=meal_registry,
        meal_ledger=meal_ledger,
        meal_view_service=meal_view_service,
        close_resources=close_resources,
    )
