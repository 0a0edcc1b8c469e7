from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Query
from sqlalchemy.orm import Session

from fitlive.db.session import get_db
from fitlive.auth.models import User
from fitlive.nutrition.models import DailyNutrition, Meal, RecipeMeal, MealPlan, MealPlanMeal, MealPlanRequest
from fitlive.nutrition import service
from fitlive.nutrition.aggregation import (
    GOAL_ADJUSTMENTS, TIMEFRAMES, WEEKS_LEGACY, WEEKS_CALENDAR,
    aggregate, overview, macro_breakdown, recommended_intake,
)
from fitlive.core.config import RECENT_MEALS_LIMIT
from fitlive.core.deps import get_current_user, get_admin, is_admin
from fitlive.core.logging import get_logger

router = APIRouter(tags=["nutrition"])

logger = get_logger(__name__, "NUTRITION")


def _parse_day(value: Optional[str]) -> date:
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise HTTPException(status_code=400, detail="date must be YYYY-MM-DD")


def _meal_dict(meal: Meal) -> dict:
    return {
        "id": meal.id,
        "meal_type": meal.meal_type,
        "food_item_name": meal.food_item_name,
        "calories": meal.calories,
        "protein": meal.protein,
        "carbs": meal.carbs,
        "fats": meal.fats,
    }


def _day_dict(row: Optional[DailyNutrition], day: date) -> dict:
    if row is None:
        return {
            "date": day.isoformat(),
            "total_calories": 0,
            "total_protein": 0,
            "total_carbs": 0,
            "total_fats": 0,
            "water_intake": 0,
        }
    return {
        "date": row.date.isoformat(),
        "total_calories": row.total_calories,
        "total_protein": row.total_protein,
        "total_carbs": row.total_carbs,
        "total_fats": row.total_fats,
        "water_intake": row.water_intake,
    }


def _user_intake(user: User) -> dict:
    return recommended_intake(
        user.age, user.gender, user.height, user.weight, user.activity_level, user.goal,
    )


# ======================================================
# DAILY LOG
# ======================================================
@router.get("/nutrition/daily")
def get_daily_nutrition(
    date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    day = _parse_day(date)
    row = service.get_day(db, user.id, day)

    meals = {meal_type: [] for meal_type in service.MEAL_TYPES}
    for meal in (row.meals if row else []):
        meals.setdefault(meal.meal_type, []).append(_meal_dict(meal))

    return {
        **_day_dict(row, day),
        "meals": meals,
        "recommended": _user_intake(user),
    }


@router.post("/nutrition/meals")
def log_meal(
    meal_type: str = Form(...),
    food_item_name: str = Form(...),
    calories: float = Form(0),
    protein: float = Form(0),
    carbs: float = Form(0),
    fats: float = Form(0),
    date: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    meal_type = meal_type.strip().lower()
    if meal_type not in service.MEAL_TYPES:
        raise HTTPException(status_code=400, detail=f"meal_type must be one of {', '.join(service.MEAL_TYPES)}")
    if not food_item_name.strip():
        raise HTTPException(status_code=400, detail="Food item name is required")
    if min(calories, protein, carbs, fats) < 0:
        raise HTTPException(status_code=400, detail="Nutrition values cannot be negative")

    day = _parse_day(date)
    meal = service.add_meal(
        db, user, day, meal_type, food_item_name.strip(), calories, protein, carbs, fats,
    )
    return {
        "meal": _meal_dict(meal),
        "daily": _day_dict(meal.nutrition, day),
    }


@router.delete("/nutrition/meals/{meal_id}")
def delete_meal(
    meal_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    meal = (
        db.query(Meal)
        .join(DailyNutrition, Meal.nutrition_id == DailyNutrition.id)
        .filter(Meal.id == meal_id, DailyNutrition.user_id == user.id)
        .first()
    )
    if not meal:
        raise HTTPException(status_code=404, detail="Meal not found")

    row = service.delete_meal(db, meal)
    return {"message": "Meal deleted", "daily": _day_dict(row, row.date)}


@router.post("/nutrition/water")
def update_water(
    delta: int = Form(...),
    date: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if delta not in (1, -1):
        raise HTTPException(status_code=400, detail="delta must be 1 or -1")

    row = service.adjust_water(db, user, _parse_day(date), delta)
    return {"date": row.date.isoformat(), "water_intake": row.water_intake}


@router.get("/nutrition/recent-meals")
def list_recent_meals(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    recent = service.recent_meals(db, user.id, RECENT_MEALS_LIMIT)
    return {
        "recent_meals": [
            {
                "food_item_name": r.food_item_name,
                "meal_type": r.meal_type,
                "calories": r.calories,
                "protein": r.protein,
                "carbs": r.carbs,
                "fats": r.fats,
            }
            for r in recent
        ]
    }


# ======================================================
# GRAPH
# ======================================================
@router.get("/nutrition/graph")
def nutrition_graph(
    timeframe: str = Query("Daily"),
    week_mode: str = Query(WEEKS_LEGACY),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if timeframe not in TIMEFRAMES:
        raise HTTPException(status_code=400, detail=f"timeframe must be one of {', '.join(TIMEFRAMES)}")
    if week_mode not in (WEEKS_LEGACY, WEEKS_CALENDAR):
        raise HTTPException(status_code=400, detail="week_mode must be 'legacy' or 'calendar'")

    rows = (
        db.query(DailyNutrition)
        .filter(DailyNutrition.user_id == user.id)
        .order_by(DailyNutrition.date.asc())
        .all()
    )
    series = aggregate(rows, timeframe, week_mode=week_mode)
    return {
        **series.to_dict(),
        "overview": overview(rows, timeframe),
    }


# ======================================================
# RECIPE MEALS
# ======================================================
def _recipe_dict(recipe: RecipeMeal, full: bool = False) -> dict:
    data = {
        "id": recipe.id,
        "name": recipe.name,
        "description": recipe.description,
        "image_base64": recipe.image_base64,
        "calories": recipe.calories,
        "protein": recipe.protein,
        "carbs": recipe.carbs,
        "fats": recipe.fats,
    }
    if full:
        data["ingredients"] = recipe.ingredients
        data["instructions"] = recipe.instructions
    return data


@router.get("/recipe-meals")
def list_recipe_meals(
    q: Optional[str] = Query(None, description="case-insensitive name search"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = db.query(RecipeMeal)
    if q and q.strip():
        query = query.filter(RecipeMeal.name.ilike(f"%{q.strip()}%"))
    recipes = query.order_by(RecipeMeal.created_at.desc(), RecipeMeal.id.desc()).all()
    return {"recipe_meals": [_recipe_dict(r) for r in recipes]}


@router.get("/recipe-meals/{recipe_id}")
def get_recipe_meal(
    recipe_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    recipe = db.query(RecipeMeal).filter(RecipeMeal.id == recipe_id).first()
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe meal not found")
    return _recipe_dict(recipe, full=True)


@router.post("/recipe-meals")
def create_recipe_meal(
    name: str = Form(...),
    description: str = Form(""),
    ingredients: str = Form(""),
    instructions: str = Form(""),
    image_base64: Optional[str] = Form(None),
    calories: float = Form(0),
    protein: float = Form(0),
    carbs: float = Form(0),
    fats: float = Form(0),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    if not name.strip():
        raise HTTPException(status_code=400, detail="Recipe name is required")

    recipe = RecipeMeal(
        name=name.strip(),
        description=description.strip(),
        ingredients=ingredients.strip(),
        instructions=instructions.strip(),
        image_base64=image_base64 or None,
        calories=calories,
        protein=protein,
        carbs=carbs,
        fats=fats,
    )
    db.add(recipe)
    db.commit()
    db.refresh(recipe)

    logger.info(f"admin={admin.id} created recipe_meal={recipe.id}")
    return _recipe_dict(recipe, full=True)


# ======================================================
# MEAL PLANS
# ======================================================
PLAN_TIERS = ("free", "premium")
REQUEST_STATUSES = ("pending", "completed")


def _get_meal_plan(db: Session, plan_id: int) -> MealPlan:
    plan = db.query(MealPlan).filter(MealPlan.id == plan_id).first()
    if not plan:
        raise HTTPException(status_code=404, detail="Meal plan not found")
    return plan


def _is_locked(plan: MealPlan, user: User) -> bool:
    return bool(plan.is_premium) and not (user.is_premium or is_admin(user))


def _plan_recipes(plan: MealPlan) -> List[RecipeMeal]:
    return [entry.recipe_meal for entry in plan.entries if entry.recipe_meal]


def _plan_summary(plan: MealPlan, user: User) -> dict:
    return {
        "id": plan.id,
        "name": plan.name,
        "description": plan.description,
        "is_premium": bool(plan.is_premium),
        "goal": plan.goal,
        "meal_count": len(plan.entries),
        "total_calories": macro_breakdown(_plan_recipes(plan))["total_calories"],
        "locked": _is_locked(plan, user),
        "recommended": bool(user.goal) and plan.goal == user.goal,
    }


def _validated_plan_fields(
    db: Session,
    name: str,
    recipe_meal_ids: List[int],
    goal: Optional[str],
) -> Optional[str]:
    """Checks shared by create and update; returns the normalised goal."""
    if not name.strip():
        raise HTTPException(status_code=400, detail="Meal plan name is required")
    if not recipe_meal_ids:
        raise HTTPException(status_code=400, detail="Please select at least one recipe meal")

    found = {
        r.id for r in db.query(RecipeMeal.id).filter(RecipeMeal.id.in_(recipe_meal_ids)).all()
    }
    missing = [rid for rid in recipe_meal_ids if rid not in found]
    if missing:
        raise HTTPException(status_code=400, detail=f"Unknown recipe meals: {missing}")

    if not goal:
        return None
    goal = goal.strip().lower()
    if goal not in GOAL_ADJUSTMENTS:
        raise HTTPException(status_code=400, detail=f"goal must be one of {', '.join(GOAL_ADJUSTMENTS)}")
    return goal


@router.get("/meal-plans")
def list_meal_plans(
    tier: Optional[str] = Query(None, description="free or premium; both when omitted"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = db.query(MealPlan)
    if tier is not None:
        if tier not in PLAN_TIERS:
            raise HTTPException(status_code=400, detail="tier must be 'free' or 'premium'")
        query = query.filter(MealPlan.is_premium == (tier == "premium"))

    plans = query.order_by(MealPlan.created_at.desc(), MealPlan.id.desc()).all()
    return {"meal_plans": [_plan_summary(p, user) for p in plans]}


@router.get("/meal-plans/{plan_id}")
def get_meal_plan(
    plan_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    plan = _get_meal_plan(db, plan_id)
    if _is_locked(plan, user):
        raise HTTPException(status_code=403, detail="Upgrade to premium to view this meal plan")

    recipes = _plan_recipes(plan)
    return {
        **_plan_summary(plan, user),
        "meals": [_recipe_dict(r) for r in recipes],
        "breakdown": macro_breakdown(recipes),
    }


@router.post("/meal-plans")
def create_meal_plan(
    name: str = Form(...),
    description: str = Form(""),
    recipe_meal_ids: List[int] = Form([]),
    is_premium: bool = Form(False),
    goal: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    goal = _validated_plan_fields(db, name, recipe_meal_ids, goal)

    plan = MealPlan(name=name.strip(), description=description.strip(), is_premium=is_premium, goal=goal)
    plan.entries = [MealPlanMeal(recipe_meal_id=rid) for rid in recipe_meal_ids]
    db.add(plan)
    db.commit()
    db.refresh(plan)

    logger.info(f"admin={admin.id} created meal_plan={plan.id} meals={len(recipe_meal_ids)} premium={is_premium}")
    return _plan_summary(plan, admin)


@router.post("/meal-plans/{plan_id}")
def update_meal_plan(
    plan_id: int,
    name: str = Form(...),
    description: str = Form(""),
    recipe_meal_ids: List[int] = Form([]),
    is_premium: bool = Form(False),
    goal: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    """Rewrites the whole plan, including its meal list."""
    plan = _get_meal_plan(db, plan_id)
    goal = _validated_plan_fields(db, name, recipe_meal_ids, goal)

    plan.name = name.strip()
    plan.description = description.strip()
    plan.is_premium = is_premium
    plan.goal = goal
    # delete-orphan removes the old rows
    plan.entries = [MealPlanMeal(recipe_meal_id=rid) for rid in recipe_meal_ids]
    db.commit()
    db.refresh(plan)

    logger.info(f"admin={admin.id} updated meal_plan={plan.id} meals={len(recipe_meal_ids)} premium={is_premium}")
    return _plan_summary(plan, admin)


@router.delete("/meal-plans/{plan_id}")
def delete_meal_plan(
    plan_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    plan = _get_meal_plan(db, plan_id)
    db.delete(plan)
    db.commit()
    logger.info(f"admin={admin.id} deleted meal_plan={plan_id}")
    return {"message": "Meal plan deleted"}


# ======================================================
# PERSONALISED PLAN REQUESTS
# ======================================================
def _request_dict(req: MealPlanRequest, with_profile: bool = False) -> dict:
    data = {
        "id": req.id,
        "user_id": req.user_id,
        "dietary_preference": req.dietary_preference,
        "comments": req.comments,
        "status": req.status,
        "meal_plan_id": req.meal_plan_id,
        "created_at": req.created_at.isoformat() if req.created_at else None,
    }
    if with_profile:
        # What the nutritionist tailors the plan to
        u = req.user
        data["user"] = {
            "username": u.username,
            "age": u.age,
            "gender": u.gender,
            "height": u.height,
            "weight": u.weight,
            "activity_level": u.activity_level,
            "goal": u.goal,
        }
    return data


@router.post("/meal-plan-requests")
def request_meal_plan(
    dietary_preference: str = Form(""),
    comments: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not (user.is_premium or is_admin(user)):
        raise HTTPException(status_code=403, detail="Upgrade to premium to request a personalized plan")

    req = MealPlanRequest(
        user_id=user.id,
        dietary_preference=dietary_preference.strip(),
        comments=comments.strip(),
        status="pending",
    )
    db.add(req)
    db.commit()
    db.refresh(req)

    logger.info(f"user={user.id} requested a personalized meal plan request={req.id}")
    return _request_dict(req)


@router.get("/meal-plan-requests")
def list_my_meal_plan_requests(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = (
        db.query(MealPlanRequest)
        .filter(MealPlanRequest.user_id == user.id)
        .order_by(MealPlanRequest.created_at.desc(), MealPlanRequest.id.desc())
        .all()
    )
    return {"requests": [_request_dict(r) for r in rows]}


@router.get("/admin/meal-plan-requests/pending-count")
def pending_meal_plan_request_count(
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    count = db.query(MealPlanRequest).filter(MealPlanRequest.status == "pending").count()
    return {"pending": count}


@router.get("/admin/meal-plan-requests")
def list_meal_plan_requests(
    status: str = Query("pending"),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    if status not in REQUEST_STATUSES:
        raise HTTPException(status_code=400, detail="status must be 'pending' or 'completed'")

    rows = (
        db.query(MealPlanRequest)
        .filter(MealPlanRequest.status == status)
        .order_by(MealPlanRequest.created_at.asc(), MealPlanRequest.id.asc())
        .all()
    )
    return {"requests": [_request_dict(r, with_profile=True) for r in rows]}


@router.post("/admin/meal-plan-requests/{request_id}")
def fulfil_meal_plan_request(
    request_id: int,
    meal_plan_id: int = Form(...),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    """Attach the plan built for this request and mark it completed."""
    req = db.query(MealPlanRequest).filter(MealPlanRequest.id == request_id).first()
    if not req:
        raise HTTPException(status_code=404, detail="Request not found")
    if req.status == "completed":
        raise HTTPException(status_code=409, detail="Request already completed")

    plan = _get_meal_plan(db, meal_plan_id)
    req.meal_plan_id = plan.id
    req.status = "completed"
    db.commit()
    db.refresh(req)

    logger.info(f"admin={admin.id} completed meal_plan_request={req.id} plan={plan.id}")
    return _request_dict(req, with_profile=True)
