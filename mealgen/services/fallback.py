# mealgen/services/fallback.py

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional

from mealgen.schemas.meal_plan import MealType, Recipe
from mealgen.services.features import Classifier, default_classifier
from mealgen.services.scoring import (
    DEFAULT_WEIGHTS,
    PenaltyWeights,
    ScoredCandidate,
    ScoringContext,
    rank_candidates,
    score_candidate,
)
from mealgen.services.suitability import is_suitable_for_profile, matches_meal_type, within_calories

logger = logging.getLogger(__name__)

PRIMARY_CALORIE_TOLERANCE = 0.20
WIDE_CALORIE_TOLERANCE = 0.40


class GenerationTier(str, Enum):
    PRIMARY = "primary"
    RELAXED = "relaxed"
    LOCAL = "local"
    BUNDLED = "bundled"
    ABSOLUTE = "absolute"


TIER_SUFFIX = {
    GenerationTier.PRIMARY: "",
    GenerationTier.RELAXED: "-relaxed",
    GenerationTier.LOCAL: "-local",
    GenerationTier.BUNDLED: "-fallback",
    GenerationTier.ABSOLUTE: "-emergency",
}


def tier_tag(meal_type: MealType, tier: GenerationTier) -> str:
    """Slot identifier marking which tier filled it, e.g. "lunch-relaxed" """
    return f"{MealType(meal_type).value}{TIER_SUFFIX[GenerationTier(tier)]}"


def _summarize(attempts: List["TierAttempt"]) -> str:
    return ", ".join(f"{a.tier.value}={a.candidates}" for a in attempts)


def _dedupe(recipes: Iterable[Recipe]) -> List[Recipe]:
    seen = set()
    unique = []
    for recipe in recipes:
        if recipe.id in seen:
            continue
        seen.add(recipe.id)
        unique.append(recipe)
    return unique


@dataclass
class CandidateSources:
    """Everything one generation call may draw from, in cascade order"""
    remote: Dict[MealType, List[Recipe]] = field(default_factory=dict)
    local: List[Recipe] = field(default_factory=list)
    bundled: List[Recipe] = field(default_factory=list)

    def remote_for(self, meal_type: MealType) -> List[Recipe]:
        return self.remote.get(MealType(meal_type), [])

    def all_for(self, meal_type: MealType) -> List[Recipe]:
        return _dedupe(self.remote_for(meal_type) + self.local + self.bundled)

    def all_recipes(self) -> List[Recipe]:
        remote = [r for pool in self.remote.values() for r in pool]
        return _dedupe(remote + self.local + self.bundled)


@dataclass
class SlotRequest:
    meal_type: MealType
    scoring: ScoringContext
    enforce_uniqueness: bool = True
    # Hard exclusions honoured by every tier, including the absolute one
    exclude_ids: FrozenSet[str] = frozenset()
    require: Optional[Callable[[Recipe], bool]] = None


@dataclass
class TierAttempt:
    tier: GenerationTier
    candidates: int


@dataclass
class CascadeOutcome:
    choice: Optional[ScoredCandidate]
    tier: Optional[GenerationTier]
    attempts: List[TierAttempt] = field(default_factory=list)

    @property
    def filled(self) -> bool:
        return self.choice is not None

    def describe_attempts(self) -> str:
        return _summarize(self.attempts)


class FallbackCascade:
    """
    Tries progressively less constrained candidate sources for one slot and
    stops at the first tier with any eligible candidate:

    1. remote pool: suitability + calories within 20% (+ uniqueness)
    2. local repository: suitability + calories within 40% (+ uniqueness)
    3. bundled dataset, same rules as 2
    4. remote pool without uniqueness, only when uniqueness is enforced
    5. first recipe of the right meal type from any source

    Selection is pure; the caller commits the outcome.
    """

    def __init__(
        self,
        classifier: Classifier = default_classifier,
        weights: PenaltyWeights = DEFAULT_WEIGHTS,
    ):
        self.classifier = classifier
        self.weights = weights

    def eligible(
        self,
        recipes: Iterable[Recipe],
        request: SlotRequest,
        calorie_tolerance: float,
        uniqueness: bool,
    ) -> List[Recipe]:
        ctx = request.scoring
        results = []
        for recipe in _dedupe(recipes):
            if recipe.id in request.exclude_ids:
                continue
            if uniqueness and recipe.id in ctx.committed_ids:
                continue
            if request.require is not None and not request.require(recipe):
                continue
            if not matches_meal_type(recipe, request.meal_type, self.classifier):
                continue
            if not within_calories(recipe, ctx.target_calories, calorie_tolerance):
                continue
            if not is_suitable_for_profile(recipe, ctx.profile, self.classifier):
                continue
            results.append(recipe)
        return results

    def select(self, sources: CandidateSources, request: SlotRequest) -> CascadeOutcome:
        meal_type = MealType(request.meal_type)
        uniqueness = request.enforce_uniqueness

        tiers = [
            (GenerationTier.PRIMARY, sources.remote_for(meal_type), PRIMARY_CALORIE_TOLERANCE, uniqueness),
            (GenerationTier.LOCAL, sources.local, WIDE_CALORIE_TOLERANCE, uniqueness),
            (GenerationTier.BUNDLED, sources.bundled, WIDE_CALORIE_TOLERANCE, uniqueness),
        ]
        # Repeats only once no source has an unused candidate left
        if uniqueness:
            tiers.append((GenerationTier.RELAXED, sources.remote_for(meal_type), PRIMARY_CALORIE_TOLERANCE, False))

        attempts: List[TierAttempt] = []
        for tier, pool, tolerance, unique in tiers:
            candidates = self.eligible(pool, request, tolerance, unique)
            attempts.append(TierAttempt(tier, len(candidates)))
            if not candidates:
                continue

            ranked = rank_candidates(candidates, request.scoring, self.classifier, self.weights)
            if tier != GenerationTier.PRIMARY:
                logger.warning(
                    f"{meal_type.value}: filled from {tier.value} tier "
                    f"({_summarize(attempts)})"
                )
            return CascadeOutcome(choice=ranked[0], tier=tier, attempts=attempts)

        choice = self._absolute(sources, request)
        attempts.append(TierAttempt(GenerationTier.ABSOLUTE, 1 if choice else 0))
        if choice is None:
            logger.warning(f"{meal_type.value}: every tier exhausted ({_summarize(attempts)})")
            return CascadeOutcome(choice=None, tier=None, attempts=attempts)

        logger.warning(f"{meal_type.value}: absolute fallback picked '{choice.recipe.name}' without dietary filters")
        return CascadeOutcome(choice=choice, tier=GenerationTier.ABSOLUTE, attempts=attempts)

    def _absolute(self, sources: CandidateSources, request: SlotRequest) -> Optional[ScoredCandidate]:
        for recipe in sources.all_for(request.meal_type):
            if recipe.id in request.exclude_ids:
                continue
            if request.require is not None and not request.require(recipe):
                continue
            if matches_meal_type(recipe, request.meal_type, self.classifier):
                return score_candidate(recipe, request.scoring, self.classifier, self.weights)
        return None
