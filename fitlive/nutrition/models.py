from sqlalchemy import Column, Integer, String, Text, Boolean, Date, DateTime, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fitlive.db.base import Base


class DailyNutrition(Base):
    """
    One row per user per calendar day.
    Totals are recomputed from the day's meals whenever a meal is added or removed.
    """
    __tablename__ = "daily_nutrition"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)

    total_calories = Column(Float, nullable=False, default=0)
    total_protein = Column(Float, nullable=False, default=0)
    total_carbs = Column(Float, nullable=False, default=0)
    total_fats = Column(Float, nullable=False, default=0)

    # Glasses of water
    water_intake = Column(Integer, nullable=False, default=0)

    meals = relationship(
        "Meal",
        back_populates="nutrition",
        order_by="Meal.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_nutrition_user_date"),
    )


class Meal(Base):
    __tablename__ = "meals"

    id = Column(Integer, primary_key=True, index=True)
    nutrition_id = Column(Integer, ForeignKey("daily_nutrition.id", ondelete="CASCADE"), nullable=False, index=True)

    meal_type = Column(String(16), nullable=False)  # breakfast | lunch | dinner | snack
    food_item_name = Column(String(255), nullable=False)

    calories = Column(Float, nullable=False, default=0)
    protein = Column(Float, nullable=False, default=0)
    carbs = Column(Float, nullable=False, default=0)
    fats = Column(Float, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    nutrition = relationship("DailyNutrition", back_populates="meals")


class RecipeMeal(Base):
    """Admin-curated recipe that meal plans are built from."""
    __tablename__ = "recipe_meals"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    ingredients = Column(Text, nullable=False, default="")
    instructions = Column(Text, nullable=False, default="")
    image_base64 = Column(Text, nullable=True)

    calories = Column(Float, nullable=False, default=0)
    protein = Column(Float, nullable=False, default=0)
    carbs = Column(Float, nullable=False, default=0)
    fats = Column(Float, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class MealPlan(Base):
    __tablename__ = "meal_plans"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")

    # Premium plans are listed to everyone but only opened by premium users and admins
    is_premium = Column(Boolean, nullable=False, default=False)
    # Same vocabulary as User.goal; a match marks the plan as recommended
    goal = Column(String(32), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    entries = relationship(
        "MealPlanMeal",
        back_populates="meal_plan",
        order_by="MealPlanMeal.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class MealPlanMeal(Base):
    __tablename__ = "meal_plan_meals"

    id = Column(Integer, primary_key=True, index=True)
    meal_plan_id = Column(Integer, ForeignKey("meal_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    recipe_meal_id = Column(Integer, ForeignKey("recipe_meals.id", ondelete="CASCADE"), nullable=False, index=True)

    meal_plan = relationship("MealPlan", back_populates="entries")
    recipe_meal = relationship("RecipeMeal")


class RecentMeal(Base):
    """Foods a user has logged before, offered again when picking a meal."""
    __tablename__ = "recent_meals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    food_item_name = Column(String(255), nullable=False)
    meal_type = Column(String(16), nullable=False)

    calories = Column(Float, nullable=False, default=0)
    protein = Column(Float, nullable=False, default=0)
    carbs = Column(Float, nullable=False, default=0)
    fats = Column(Float, nullable=False, default=0)

    # Bumped each time the food is logged again
    last_logged_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "food_item_name", name="uq_recent_meals_user_food"),
    )


class MealPlanRequest(Base):
    """A premium user's request for a plan tailored to their profile."""
    __tablename__ = "meal_plan_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    dietary_preference = Column(String(255), nullable=False, default="")
    comments = Column(Text, nullable=False, default="")

    status = Column(String(16), nullable=False, default="pending", index=True)  # pending | completed
    # Plan the nutritionist built for this request, once there is one
    meal_plan_id = Column(Integer, ForeignKey("meal_plans.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User")
    meal_plan = relationship("MealPlan")
