from fastapi import FastAPI

from fitlive.db.base import Base, engine
# Import models so create_all picks them up
from fitlive.auth.models import User  # noqa: F401
from fitlive.challenges.models import Challenge, Task, ChallengeParticipant, ChallengeSubmission  # noqa: F401
from fitlive.nutrition.models import (  # noqa: F401
    DailyNutrition, Meal, RecipeMeal, MealPlan, MealPlanMeal, RecentMeal, MealPlanRequest,
)
from fitlive.community.models import Article, Moment, MomentLike, MomentComment, MomentReport  # noqa: F401
from fitlive.payments.models import PaymentIntent  # noqa: F401

from fitlive.auth.routes import router as auth_router
from fitlive.users.routes import router as users_router
from fitlive.challenges.routes import router as challenge_router
from fitlive.nutrition.routes import router as nutrition_router
from fitlive.community.routes import router as community_router
from fitlive.payments.routes import router as payments_router
from fitlive.api.routes import router as api_router


app = FastAPI(title="FitLive", version="0.1.0")

# Create database tables (still useful in dev; in production prefer Alembic)
Base.metadata.create_all(bind=engine)

# Include routers
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(challenge_router)
app.include_router(nutrition_router)
app.include_router(community_router)
app.include_router(payments_router)
app.include_router(api_router)


@app.get("/", include_in_schema=False)
def root():
    return {"app": "FitLive", "status": "ok"}
