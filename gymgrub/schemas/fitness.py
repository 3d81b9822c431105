"""Pydantic v2 request/response schemas for fitness calculator endpoints."""

from pydantic import BaseModel, Field

# --- Request schemas ---


class OneRepMaxRequest(BaseModel):
    weight: float = Field(ge=0)
    reps: int = Field(ge=0, le=100)


class SetInput(BaseModel):
    reps: int = Field(ge=0)
    weight: float = Field(ge=0)
    completed: bool = True
    rpe: float | None = Field(default=None, ge=0, le=10)
    rest_seconds: int | None = Field(default=None, ge=0)


class VolumeRequest(BaseModel):
    sets: list[SetInput]


class WarmupRequest(BaseModel):
    working_weight: float = Field(gt=0)


class Macros(BaseModel):
    calories: float = Field(default=0, ge=0)
    protein: float = Field(default=0, ge=0)
    carbs: float = Field(default=0, ge=0)
    fat: float = Field(default=0, ge=0)


class NutritionSummaryRequest(BaseModel):
    """A day's logged meals and the user's macro goals."""

    meals: list[Macros]
    goals: Macros


# --- Response schemas ---


class OneRepMaxResponse(BaseModel):
    one_rep_max: float


class VolumeResponse(BaseModel):
    volume: float
    completed_sets: int


class WarmupSetResponse(BaseModel):
    weight: float
    reps: int


class WarmupResponse(BaseModel):
    sets: list[WarmupSetResponse]


class NutritionSummaryResponse(BaseModel):
    totals: Macros
    goals: Macros
    percent_of_goal: Macros
    remaining_calories: float
