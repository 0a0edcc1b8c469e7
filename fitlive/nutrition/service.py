"""
Meal logging on top of the per-day nutrition rows.
The day's totals are always rebuilt from its meals, never adjusted incrementally.
"""
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from fitlive.auth.models import User
from fitlive.nutrition.models import DailyNutrition, Meal, RecentMeal
from fitlive.nutrition.aggregation import sum_meals
from fitlive.core.logging import get_logger

logger = get_logger(__name__, "NUTRITION")

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")


def get_day(db: Session, user_id: int, day: date) -> Optional[DailyNutrition]:
    return db.query(DailyNutrition).filter(
        DailyNutrition.user_id == user_id,
        DailyNutrition.date == day,
    ).first()


def get_or_create_day(db: Session, user_id: int, day: date) -> DailyNutrition:
    row = get_day(db, user_id, day)
    if row is None:
        row = DailyNutrition(
            user_id=user_id,
            date=day,
            total_calories=0,
            total_protein=0,
            total_carbs=0,
            total_fats=0,
            water_intake=0,
        )
        db.add(row)
        db.flush()
    return row


def recompute_totals(row: DailyNutrition) -> None:
    totals = sum_meals(row.meals)
    row.total_calories = totals["total_calories"]
    row.total_protein = totals["total_protein"]
    row.total_carbs = totals["total_carbs"]
    row.total_fats = totals["total_fats"]


def add_meal(
    db: Session,
    user: User,
    day: date,
    meal_type: str,
    food_item_name: str,
    calories: float,
    protein: float,
    carbs: float,
    fats: float,
) -> Meal:
    row = get_or_create_day(db, user.id, day)
    meal = Meal(
        meal_type=meal_type,
        food_item_name=food_item_name,
        calories=calories,
        protein=protein,
        carbs=carbs,
        fats=fats,
    )
    row.meals.append(meal)
    recompute_totals(row)
    remember_meal(db, user.id, meal)
    db.commit()
    db.refresh(meal)

    logger.info(f"user={user.id} logged {meal_type} on {day.isoformat()} kcal={calories}")
    return meal


def remember_meal(db: Session, user_id: int, meal: Meal) -> RecentMeal:
    """One entry per food name; logging it again refreshes the values and moves it to the front."""
    recent = db.query(RecentMeal).filter(
        RecentMeal.user_id == user_id,
        RecentMeal.food_item_name == meal.food_item_name,
    ).first()
    if recent is None:
        recent = RecentMeal(user_id=user_id, food_item_name=meal.food_item_name)
        db.add(recent)

    recent.meal_type = meal.meal_type
    recent.calories = meal.calories
    recent.protein = meal.protein
    recent.carbs = meal.carbs
    recent.fats = meal.fats
    recent.last_logged_at = datetime.now(timezone.utc)
    return recent


def recent_meals(db: Session, user_id: int, limit: int) -> List[RecentMeal]:
    return (
        db.query(RecentMeal)
        .filter(RecentMeal.user_id == user_id)
        .order_by(RecentMeal.last_logged_at.desc(), RecentMeal.id.desc())
        .limit(limit)
        .all()
    )


def delete_meal(db: Session, meal: Meal) -> DailyNutrition:
    row = meal.nutrition
    row.meals.remove(meal)
    recompute_totals(row)
    db.commit()
    db.refresh(row)
    return row


def adjust_water(db: Session, user: User, day: date, delta: int) -> DailyNutrition:
    """Add or remove one glass; the count never drops below zero."""
    row = get_or_create_day(db, user.id, day)
    row.water_intake = max(0, (row.water_intake or 0) + delta)
    db.commit()
    db.refresh(row)
    return row
