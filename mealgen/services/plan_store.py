# mealgen/services/plan_store.py
"""
Week plan persistence.

The engine only reads days and writes single slots through ``set_slot``;
deleting slots and clearing days are user actions that live here too.
Reads always hand back copies, so callers can't mutate stored state.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date, timedelta
from typing import Dict, Optional

from sqlalchemy.orm import Session

from mealgen.models.database import MealSlotRecord
from mealgen.schemas.meal_plan import DailyMealPlan, MealSlot, MealType

logger = logging.getLogger(__name__)

WeekPlan = Dict[date, DailyMealPlan]


class MealPlanStore(ABC):

    @abstractmethod
    def get_day(self, plan_date: date) -> DailyMealPlan:
        ...

    @abstractmethod
    def set_slot(self, plan_date: date, meal_type: MealType, slot: MealSlot) -> None:
        ...

    @abstractmethod
    def remove_slot(self, plan_date: date, meal_type: MealType) -> None:
        ...

    def get_slot(self, plan_date: date, meal_type: MealType) -> Optional[MealSlot]:
        return self.get_day(plan_date).get_slot(meal_type)

    def get_range(self, start_date: date, end_date: date) -> WeekPlan:
        days = {}
        current = start_date
        while current <= end_date:
            days[current] = self.get_day(current)
            current += timedelta(days=1)
        return days

    def clear_day(self, plan_date: date) -> None:
        for meal_type in self.get_day(plan_date).filled_slots():
            self.remove_slot(plan_date, meal_type)


class InMemoryMealPlanStore(MealPlanStore):
    def __init__(self):
        self._days: Dict[date, DailyMealPlan] = {}

    def get_day(self, plan_date: date) -> DailyMealPlan:
        day = self._days.get(plan_date)
        if day is None:
            return DailyMealPlan(plan_date=plan_date)
        return day.model_copy(deep=True)

    def set_slot(self, plan_date: date, meal_type: MealType, slot: MealSlot) -> None:
        day = self._days.setdefault(plan_date, DailyMealPlan(plan_date=plan_date))
        day.set_slot(meal_type, slot.model_copy(deep=True))

    def remove_slot(self, plan_date: date, meal_type: MealType) -> None:
        day = self._days.get(plan_date)
        if day is not None:
            day.set_slot(meal_type, None)

    def clear_day(self, plan_date: date) -> None:
        self._days.pop(plan_date, None)


class SqlMealPlanStore(MealPlanStore):
    """Slots persisted one row per (date, meal type)"""

    def __init__(self, db: Session):
        self.db = db

    def _record(self, plan_date: date, meal_type: MealType) -> Optional[MealSlotRecord]:
        return self.db.query(MealSlotRecord).filter(
            MealSlotRecord.plan_date == plan_date,
            MealSlotRecord.meal_type == MealType(meal_type).value,
        ).first()

    def get_day(self, plan_date: date) -> DailyMealPlan:
        day = DailyMealPlan(plan_date=plan_date)
        records = self.db.query(MealSlotRecord).filter(MealSlotRecord.plan_date == plan_date).all()
        for record in records:
            day.set_slot(MealType(record.meal_type), record.to_slot())
        return day

    def get_range(self, start_date: date, end_date: date) -> WeekPlan:
        days = {}
        current = start_date
        while current <= end_date:
            days[current] = DailyMealPlan(plan_date=current)
            current += timedelta(days=1)

        records = self.db.query(MealSlotRecord).filter(
            MealSlotRecord.plan_date >= start_date,
            MealSlotRecord.plan_date <= end_date,
        ).all()
        for record in records:
            days[record.plan_date].set_slot(MealType(record.meal_type), record.to_slot())
        return days

    def set_slot(self, plan_date: date, meal_type: MealType, slot: MealSlot) -> None:
        try:
            record = self._record(plan_date, meal_type)
            if record is None:
                record = MealSlotRecord(plan_date=plan_date, meal_type=MealType(meal_type).value)
                self.db.add(record)
            record.apply_slot(slot)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def remove_slot(self, plan_date: date, meal_type: MealType) -> None:
        record = self._record(plan_date, meal_type)
        if record is not None:
            self.db.delete(record)
            self.db.commit()

    def clear_day(self, plan_date: date) -> None:
        deleted = self.db.query(MealSlotRecord).filter(MealSlotRecord.plan_date == plan_date).delete()
        self.db.commit()
        logger.info(f"Cleared {deleted} slots on {plan_date}")
