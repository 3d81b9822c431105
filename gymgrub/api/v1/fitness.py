"""Fitness calculator endpoints — one-rep max, volume, warm-ups, nutrition totals."""

from dataclasses import asdict

from fastapi import APIRouter, Depends

from gymgrub.fitness.metrics import (
    LoggedSet,
    MacroTotals,
    calculate_one_rep_max,
    calculate_volume,
    calculate_warmup_sets,
    summarize_nutrition,
)
from gymgrub.payments.dependencies import require_premium
from gymgrub.schemas.fitness import (
    Macros,
    NutritionSummaryRequest,
    NutritionSummaryResponse,
    OneRepMaxRequest,
    OneRepMaxResponse,
    VolumeRequest,
    VolumeResponse,
    WarmupRequest,
    WarmupResponse,
    WarmupSetResponse,
)

router = APIRouter(prefix="/api/v1/fitness", tags=["fitness"])


@router.post("/one-rep-max", response_model=OneRepMaxResponse)
async def one_rep_max(body: OneRepMaxRequest) -> OneRepMaxResponse:
    return OneRepMaxResponse(one_rep_max=calculate_one_rep_max(body.weight, body.reps))


@router.post("/volume", response_model=VolumeResponse)
async def volume(body: VolumeRequest) -> VolumeResponse:
    sets = [LoggedSet(**s.model_dump()) for s in body.sets]
    return VolumeResponse(
        volume=calculate_volume(sets),
        completed_sets=sum(1 for s in sets if s.completed),
    )


@router.post("/warmup-sets", response_model=WarmupResponse)
async def warmup_sets(body: WarmupRequest) -> WarmupResponse:
    return WarmupResponse(
        sets=[
            WarmupSetResponse(weight=s.weight, reps=s.reps)
            for s in calculate_warmup_sets(body.working_weight)
        ]
    )


@router.post("/nutrition-summary", response_model=NutritionSummaryResponse)
async def nutrition_summary(
    body: NutritionSummaryRequest,
    _user_id: str = Depends(require_premium),
) -> NutritionSummaryResponse:
    """Daily macro totals against goals (Premium)."""
    summary = summarize_nutrition(
        [MacroTotals(**m.model_dump()) for m in body.meals],
        MacroTotals(**body.goals.model_dump()),
    )
    return NutritionSummaryResponse(
        totals=Macros(**asdict(summary.totals)),
        goals=Macros(**asdict(summary.goals)),
        percent_of_goal=Macros(**asdict(summary.percent_of_goal)),
        remaining_calories=summary.remaining_calories,
    )
