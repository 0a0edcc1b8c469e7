import uuid
from datetime import date


def log_meal(client, user, **fields):
    data = {"meal_type": "lunch", "food_item_name": "Rice", "calories": 300, "protein": 10, "carbs": 50, "fats": 5}
    data.update(fields)
    return client.post("/nutrition/meals", data=data, headers=user.headers)


def test_daily_view_groups_meals_and_rounds_totals(client, make_user):
    user = make_user(age=30, gender="male", height=180, weight=80,
                     activity_level="sedentary", goal="general_fitness")

    log_meal(client, user, date="2024-03-10", meal_type="breakfast", food_item_name="Oats", calories=150.4)
    log_meal(client, user, date="2024-03-10", meal_type="lunch", calories=300.3, protein=10.5)

    day = client.get("/nutrition/daily", params={"date": "2024-03-10"}, headers=user.headers).json()
    assert day["total_calories"] == 451
    assert day["total_protein"] == 21
    assert [m["food_item_name"] for m in day["meals"]["breakfast"]] == ["Oats"]
    assert day["meals"]["dinner"] == []
    assert day["recommended"]["calories"] > 0


def test_empty_day_is_all_zero(client, make_user):
    user = make_user()
    day = client.get("/nutrition/daily", params={"date": "2024-01-01"}, headers=user.headers).json()
    assert day["total_calories"] == 0
    assert day["water_intake"] == 0
    assert day["recommended"] == {"calories": 0, "protein": 0, "carbs": 0, "fats": 0}


def test_meal_validation(client, make_user):
    user = make_user()
    assert log_meal(client, user, meal_type="brunch").status_code == 400
    assert log_meal(client, user, food_item_name=" ").status_code == 400
    assert log_meal(client, user, calories=-5).status_code == 400
    assert log_meal(client, user, date="10/03/2024").status_code == 400


def test_delete_meal_recomputes_totals(client, make_user):
    user, other = make_user(), make_user()
    keep = log_meal(client, user, date="2024-03-11", calories=200).json()["meal"]
    drop = log_meal(client, user, date="2024-03-11", calories=100).json()["meal"]

    assert client.delete(f"/nutrition/meals/{drop['id']}", headers=other.headers).status_code == 404

    r = client.delete(f"/nutrition/meals/{drop['id']}", headers=user.headers)
    assert r.status_code == 200
    assert r.json()["daily"]["total_calories"] == 200

    day = client.get("/nutrition/daily", params={"date": "2024-03-11"}, headers=user.headers).json()
    assert [m["id"] for m in day["meals"]["lunch"]] == [keep["id"]]


def test_water_intake_never_negative(client, make_user):
    user = make_user()
    for delta, expected in ((1, 1), (1, 2), (-1, 1), (-1, 0), (-1, 0)):
        r = client.post("/nutrition/water", data={"delta": delta, "date": "2024-03-12"}, headers=user.headers)
        assert r.json()["water_intake"] == expected

    assert client.post("/nutrition/water", data={"delta": 3}, headers=user.headers).status_code == 400


def test_graph_series(client, make_user):
    user = make_user()
    log_meal(client, user, calories=420)

    daily = client.get("/nutrition/graph", params={"timeframe": "Daily"}, headers=user.headers).json()
    assert len(daily["labels"]) == 7
    assert daily["calories"][-1] == 420
    assert daily["overview"]["calories"] == 420

    monthly = client.get("/nutrition/graph", params={"timeframe": "Monthly"}, headers=user.headers).json()
    assert len(monthly["labels"]) == len(monthly["calories"]) == 6
    assert monthly["calories"][-1] == 420

    weekly = client.get(
        "/nutrition/graph", params={"timeframe": "Weekly", "week_mode": "calendar"}, headers=user.headers,
    ).json()
    assert sum(weekly["calories"]) == 420

    bad = client.get("/nutrition/graph", params={"timeframe": "Yearly"}, headers=user.headers)
    assert bad.status_code == 400


def _recipe(client, admin, name, **macros):
    r = client.post("/recipe-meals", data={"name": name, "ingredients": "stuff", **macros}, headers=admin.headers)
    assert r.status_code == 200, r.text
    return r.json()


def test_recipe_meals_and_plan_breakdown(client, admin, make_user):
    user = make_user()
    salad = _recipe(client, admin, "Salad", calories=200, carbs=20, protein=10, fats=10)
    steak = _recipe(client, admin, "Steak", calories=500, carbs=0, protein=40, fats=20)

    assert client.post("/recipe-meals", data={"name": "x"}, headers=user.headers).status_code == 403

    detail = client.get(f"/recipe-meals/{salad['id']}", headers=user.headers).json()
    assert detail["ingredients"] == "stuff"

    r = client.post("/meal-plans", data={
        "name": "High protein",
        "recipe_meal_ids": [salad["id"], steak["id"]],
    }, headers=admin.headers)
    assert r.status_code == 200
    plan_id = r.json()["id"]

    plan = client.get(f"/meal-plans/{plan_id}", headers=user.headers).json()
    assert [m["name"] for m in plan["meals"]] == ["Salad", "Steak"]
    assert plan["breakdown"]["total_calories"] == 700
    assert plan["breakdown"]["carbs_percentage"] == 20.0
    assert plan["breakdown"]["protein_percentage"] == 50.0
    assert plan["breakdown"]["fats_percentage"] == 30.0

    listed = client.get("/meal-plans", headers=user.headers).json()["meal_plans"]
    assert any(p["id"] == plan_id and p["meal_count"] == 2 for p in listed)

    assert client.delete(f"/meal-plans/{plan_id}", headers=admin.headers).status_code == 200
    assert client.get(f"/meal-plans/{plan_id}", headers=user.headers).status_code == 404


def test_meal_plan_rejects_unknown_recipes(client, admin):
    r = client.post("/meal-plans", data={"name": "Ghost", "recipe_meal_ids": [999999]}, headers=admin.headers)
    assert r.status_code == 400
    r = client.post("/meal-plans", data={"name": "Empty"}, headers=admin.headers)
    assert r.status_code == 400


def test_home_summary_includes_today(client, make_user):
    user = make_user()
    log_meal(client, user, date=date.today().isoformat(), calories=250)
    summary = client.get("/api/me/summary", headers=user.headers).json()
    assert summary["today"]["total_calories"] == 250
    assert summary["challenges"] == []


def test_recent_meals_keep_one_entry_per_food(client, make_user):
    user = make_user()
    log_meal(client, user, date="2024-04-01", food_item_name="Oats", meal_type="breakfast", calories=150)
    log_meal(client, user, date="2024-04-01", food_item_name="Rice", calories=300)
    log_meal(client, user, date="2024-04-02", food_item_name="Oats", meal_type="snack", calories=120)

    recent = client.get("/nutrition/recent-meals", headers=user.headers).json()["recent_meals"]
    assert [(m["food_item_name"], m["meal_type"], m["calories"]) for m in recent] == [
        ("Oats", "snack", 120), ("Rice", "lunch", 300),
    ]

    for i in range(6):
        log_meal(client, user, food_item_name=f"Food {i}")
    assert len(client.get("/nutrition/recent-meals", headers=user.headers).json()["recent_meals"]) == 5


def test_recipe_search_is_case_insensitive(client, admin, make_user):
    user = make_user()
    tag = uuid.uuid4().hex[:8]
    bowl = _recipe(client, admin, f"Poke Bowl {tag}")
    _recipe(client, admin, f"Green Smoothie {tag}")

    found = client.get("/recipe-meals", params={"q": f"poke bowl {tag}"}, headers=user.headers).json()["recipe_meals"]
    assert [r["id"] for r in found] == [bowl["id"]]

    both = client.get("/recipe-meals", params={"q": tag.upper()}, headers=user.headers).json()["recipe_meals"]
    assert len(both) == 2


def test_premium_meal_plans_are_locked_for_free_users(client, admin, make_user):
    free_user = make_user(goal="muscle_gain")
    premium_user = make_user(is_premium=True)
    meal = _recipe(client, admin, "Chicken", calories=400, protein=40)

    r = client.post("/meal-plans", data={
        "name": "Bulk", "recipe_meal_ids": [meal["id"]], "is_premium": "true", "goal": "muscle_gain",
    }, headers=admin.headers)
    assert r.status_code == 200
    plan_id = r.json()["id"]

    listed = client.get("/meal-plans", params={"tier": "premium"}, headers=free_user.headers).json()["meal_plans"]
    mine = next(p for p in listed if p["id"] == plan_id)
    assert (mine["locked"], mine["recommended"], mine["total_calories"]) == (True, True, 400)
    free_ids = [p["id"] for p in client.get("/meal-plans", params={"tier": "free"}, headers=free_user.headers).json()["meal_plans"]]
    assert plan_id not in free_ids

    assert client.get(f"/meal-plans/{plan_id}", headers=free_user.headers).status_code == 403
    detail = client.get(f"/meal-plans/{plan_id}", headers=premium_user.headers)
    assert detail.status_code == 200
    assert detail.json()["locked"] is False
    assert client.get(f"/meal-plans/{plan_id}", headers=admin.headers).status_code == 200

    assert client.get("/meal-plans", params={"tier": "gold"}, headers=free_user.headers).status_code == 400
    bad_goal = client.post("/meal-plans", data={
        "name": "X", "recipe_meal_ids": [meal["id"]], "goal": "telekinesis",
    }, headers=admin.headers)
    assert bad_goal.status_code == 400


def test_admin_can_rewrite_a_meal_plan(client, admin, make_user):
    user = make_user()
    first = _recipe(client, admin, "Toast", calories=100)
    second = _recipe(client, admin, "Eggs", calories=200)
    plan_id = client.post("/meal-plans", data={
        "name": "Breakfast", "recipe_meal_ids": [first["id"]],
    }, headers=admin.headers).json()["id"]

    r = client.post(f"/meal-plans/{plan_id}", data={
        "name": "Better breakfast", "description": "more protein",
        "recipe_meal_ids": [second["id"], first["id"]], "goal": "endurance",
    }, headers=admin.headers)
    assert r.status_code == 200

    plan = client.get(f"/meal-plans/{plan_id}", headers=user.headers).json()
    assert (plan["name"], plan["description"], plan["goal"]) == ("Better breakfast", "more protein", "endurance")
    assert [m["name"] for m in plan["meals"]] == ["Eggs", "Toast"]
    assert plan["breakdown"]["total_calories"] == 300

    assert client.post(f"/meal-plans/{plan_id}", data={"name": "x", "recipe_meal_ids": [first["id"]]},
                       headers=user.headers).status_code == 403
    assert client.post(f"/meal-plans/{plan_id}", data={"name": "x"}, headers=admin.headers).status_code == 400
    assert client.post("/meal-plans/999999", data={"name": "x", "recipe_meal_ids": [first["id"]]},
                       headers=admin.headers).status_code == 404


def test_personalized_plan_requests(client, admin, make_user):
    free_user = make_user()
    premium_user = make_user(is_premium=True, age=31, goal="weight_loss")

    denied = client.post("/meal-plan-requests", data={"dietary_preference": "Keto"}, headers=free_user.headers)
    assert denied.status_code == 403

    before = client.get("/admin/meal-plan-requests/pending-count", headers=admin.headers).json()["pending"]
    r = client.post("/meal-plan-requests", data={
        "dietary_preference": "Keto", "comments": "No soy",
    }, headers=premium_user.headers)
    assert r.status_code == 200
    request_id = r.json()["id"]
    assert r.json()["status"] == "pending"
    assert client.get("/admin/meal-plan-requests/pending-count", headers=admin.headers).json()["pending"] == before + 1

    queue = client.get("/admin/meal-plan-requests", headers=admin.headers).json()["requests"]
    queued = next(q for q in queue if q["id"] == request_id)
    assert queued["user"]["age"] == 31
    assert queued["user"]["goal"] == "weight_loss"

    meal = _recipe(client, admin, "Keto salad")
    plan_id = client.post("/meal-plans", data={
        "name": "Keto for you", "recipe_meal_ids": [meal["id"]], "is_premium": "true",
    }, headers=admin.headers).json()["id"]
    done = client.post(f"/admin/meal-plan-requests/{request_id}", data={"meal_plan_id": plan_id}, headers=admin.headers)
    assert done.status_code == 200
    assert done.json()["status"] == "completed"
    again = client.post(f"/admin/meal-plan-requests/{request_id}", data={"meal_plan_id": plan_id}, headers=admin.headers)
    assert again.status_code == 409

    mine = client.get("/meal-plan-requests", headers=premium_user.headers).json()["requests"]
    assert [(m["id"], m["meal_plan_id"]) for m in mine] == [(request_id, plan_id)]
    assert client.get("/admin/meal-plan-requests/pending-count", headers=admin.headers).json()["pending"] == before
    assert client.get("/admin/meal-plan-requests", params={"status": "lost"}, headers=admin.headers).status_code == 400
    assert client.get("/admin/meal-plan-requests", headers=premium_user.headers).status_code == 403
