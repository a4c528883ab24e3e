"""Pydantic models for request payloads."""

from pydantic import BaseModel, ConfigDict, Field


class LogFoodRequest(BaseModel):
    """Body of a food logging request."""

    model_config = ConfigDict(populate_by_name=True)

    fdc_id: int = Field(alias="fdcId", gt=0)
    meal_id: int = Field(alias="mealId", gt=0)
    quantity: float = Field(gt=0, allow_inf_nan=False)
