"""Training and nutrition arithmetic used by the logbook and calorie tracker."""

import math
from collections.abc import Iterable
from dataclasses import dataclass

WARMUP_SCHEME: tuple[tuple[float, int], ...] = (
    (0.4, 10),
    (0.5, 8),
    (0.6, 5),
    (0.7, 3),
    (0.8, 2),
)


@dataclass(frozen=True)
class LoggedSet:
    reps: int
    weight: float
    completed: bool = True
    rpe: float | None = None
    rest_seconds: int | None = None


@dataclass(frozen=True)
class WarmupSet:
    weight: float
    reps: int


@dataclass(frozen=True)
class MacroTotals:
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0


@dataclass(frozen=True)
class NutritionSummary:
    totals: MacroTotals
    goals: MacroTotals
    percent_of_goal: MacroTotals
    remaining_calories: float


def calculate_one_rep_max(weight: float, reps: int) -> float:
    """Estimated one-rep max (Epley): ``weight * (1 + reps / 30)``."""
    if reps == 0 or weight == 0:
        return 0.0
    if reps == 1:
        return float(weight)
    return round(weight * (1 + reps / 30), 2)


def calculate_volume(sets: Iterable[LoggedSet]) -> float:
    """Total weight moved over completed sets."""
    return sum(s.reps * s.weight for s in sets if s.completed)


def _round_to_nearest(value: float, step: float) -> float:
    return math.floor(value / step + 0.5) * step


def calculate_warmup_sets(working_weight: float) -> list[WarmupSet]:
    """Ramp-up sets at 40-80% of the working weight, rounded to 5."""
    return [
        WarmupSet(weight=float(_round_to_nearest(working_weight * percentage, 5)), reps=reps)
        for percentage, reps in WARMUP_SCHEME
    ]


def _percent(value: float, goal: float) -> float:
    if goal <= 0:
        return 0.0
    return round(value / goal * 100, 1)


def summarize_nutrition(meals: Iterable[MacroTotals], goals: MacroTotals) -> NutritionSummary:
    """Sum the day's meals and compare them with the macro goals."""
    calories = protein = carbs = fat = 0.0
    for meal in meals:
        calories += meal.calories
        protein += meal.protein
        carbs += meal.carbs
        fat += meal.fat

    totals = MacroTotals(
        calories=round(calories, 1),
        protein=round(protein, 1),
        carbs=round(carbs, 1),
        fat=round(fat, 1),
    )
    return NutritionSummary(
        totals=totals,
        goals=goals,
        percent_of_goal=MacroTotals(
            calories=_percent(calories, goals.calories),
            protein=_percent(protein, goals.protein),
            carbs=_percent(carbs, goals.carbs),
            fat=_percent(fat, goals.fat),
        ),
        remaining_calories=round(goals.calories - calories, 1),
    )
