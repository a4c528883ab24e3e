"""Food cache domain models."""

from dataclasses import dataclass, field

ENERGY = "Energy"
PROTEIN = "Protein"
CARBOHYDRATE = "Carbohydrate, by difference"
FAT = "Total lipid (fat)"

# Provider nutrient ids for the tracked nutrients.
TRACKED_NUTRIENT_IDS: dict[int, str] = {
    1008: ENERGY,
    1003: PROTEIN,
    1005: CARBOHYDRATE,
    1004: FAT,
}

DEFAULT_SERVING_UNIT = "g"
DEFAULT_SERVING_SIZE = 100.0

SOURCE_CACHE = "cache"
SOURCE_REMOTE = "remote"


@dataclass(frozen=True)
class NutrientFact:
    """A tracked nutrient value per 100 units of serving mass."""

    nutrient_name: str
    value: float
    unit_name: str


@dataclass(frozen=True)
class FoodRecord:
    """Canonical food attributes keyed by the provider's FDC id."""

    fdc_id: int
    description: str
    brand_name: str | None = None
    serving_size_unit: str = DEFAULT_SERVING_UNIT
    serving_size: float = DEFAULT_SERVING_SIZE
    has_real_serving: bool = False
    nutrients: list[NutrientFact] = field(default_factory=list)


@dataclass(frozen=True)
class ResolvedFood:
    """A food together with where it was resolved from."""

    source: str
    food: FoodRecord


@dataclass(frozen=True)
class FoodSearchResult:
    """A candidate food returned by a text search."""

    fdc_id: int
    description: str
    brand: str
    nutrients: dict[str, float]
