"""
Nutrition aggregation for the charts and summaries.

Everything here is pure: callers pass the user's per-day rows (already
fetched) plus "today", and get back plain values. Buckets with no rows report
zero, and every series in a NutritionSeries has the same length as its labels.

Timeframes:
  Daily   - the 7 days ending today, one bucket per day
  Weekly  - "Week 1".."Week N" for each Sunday-start week touching this month
  Monthly - the 6 calendar months ending with the current one
"""
import calendar
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Iterable, List, Mapping, Optional, Union

DAILY = "Daily"
WEEKLY = "Weekly"
MONTHLY = "Monthly"
TIMEFRAMES = (DAILY, WEEKLY, MONTHLY)

# Weekly bucketing modes
WEEKS_LEGACY = "legacy"
WEEKS_CALENDAR = "calendar"

WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
                "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

OVERVIEW_WEEK_ROWS = 7
OVERVIEW_MONTH_ROWS = 30


@dataclass(frozen=True)
class NutritionRecord:
    date: date
    total_calories: float = 0
    total_protein: float = 0
    total_carbs: float = 0
    total_fats: float = 0

    @classmethod
    def from_row(cls, row: Union[Mapping, Any]) -> "NutritionRecord":
        """Build from a dict or an ORM row. A missing or malformed date raises ValueError."""
        get = row.get if isinstance(row, Mapping) else lambda k, d=None: getattr(row, k, d)
        return cls(
            date=_to_date(get("date")),
            total_calories=get("total_calories") or 0,
            total_protein=get("total_protein") or 0,
            total_carbs=get("total_carbs") or 0,
            total_fats=get("total_fats") or 0,
        )


@dataclass
class NutritionSeries:
    timeframe: str
    labels: List[str] = field(default_factory=list)
    calories: List[float] = field(default_factory=list)
    protein: List[float] = field(default_factory=list)
    carbs: List[float] = field(default_factory=list)
    fats: List[float] = field(default_factory=list)

    def add_bucket(self, label: str, rows: Iterable[NutritionRecord]) -> None:
        rows = list(rows)
        self.labels.append(label)
        self.calories.append(sum(r.total_calories for r in rows))
        self.protein.append(sum(r.total_protein for r in rows))
        self.carbs.append(sum(r.total_carbs for r in rows))
        self.fats.append(sum(r.total_fats for r in rows))

    def to_dict(self) -> dict:
        return {
            "timeframe": self.timeframe,
            "labels": self.labels,
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fats": self.fats,
        }


def _to_date(value) -> date:
    if value is None or value == "":
        raise ValueError("nutrition record has no date")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def _records(rows: Iterable) -> List[NutritionRecord]:
    return [r if isinstance(r, NutritionRecord) else NutritionRecord.from_row(r) for r in rows]


def bucket_totals(series: NutritionSeries, index: int) -> dict:
    """Totals of one bucket; an empty bucket is all zeros."""
    return {
        "total_calories": series.calories[index],
        "total_protein": series.protein[index],
        "total_carbs": series.carbs[index],
        "total_fats": series.fats[index],
    }


# ---------------------------------------------------------------------------
# TIMEFRAMES
# ---------------------------------------------------------------------------

def _daily(records: List[NutritionRecord], today: date) -> NutritionSeries:
    series = NutritionSeries(DAILY)
    for offset in range(6, -1, -1):
        day = today - timedelta(days=offset)
        series.add_bucket(WEEKDAY_LABELS[day.weekday()], (r for r in records if r.date == day))
    return series


def _sunday_on_or_before(day: date) -> date:
    # date.weekday(): Monday=0 .. Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def month_week_count(today: date) -> int:
    """Number of Sunday-start weeks that overlap today's month (4 to 6)."""
    first = today.replace(day=1)
    last = today.replace(day=calendar.monthrange(today.year, today.month)[1])
    start = _sunday_on_or_before(first)
    end = _sunday_on_or_before(last) + timedelta(days=6)
    return ((end - start).days + 1) // 7


def legacy_week_number(day: date) -> int:
    """
    Week label used by the original charts: ceil((day_of_month - 1) / 7) + 1.

    It ignores the month and the weekday the month starts on, so the 8th is
    always "Week 2" and the 30th/31st land in "Week 6" even in a 5-week month.
    """
    return math.ceil((day.day - 1) / 7) + 1


def _weekly(records: List[NutritionRecord], today: date, mode: str) -> NutritionSeries:
    weeks = month_week_count(today)
    buckets = {n: [] for n in range(1, weeks + 1)}

    if mode == WEEKS_CALENDAR:
        first_sunday = _sunday_on_or_before(today.replace(day=1))
        for r in records:
            if (r.date.year, r.date.month) != (today.year, today.month):
                continue
            buckets[(r.date - first_sunday).days // 7 + 1].append(r)
    elif mode == WEEKS_LEGACY:
        for r in records:
            n = legacy_week_number(r.date)
            # Rows whose label does not exist this month are dropped
            if n in buckets:
                buckets[n].append(r)
    else:
        raise ValueError(f"Unknown week bucketing mode: {mode!r}")

    series = NutritionSeries(WEEKLY)
    for n in range(1, weeks + 1):
        series.add_bucket(f"Week {n}", buckets[n])
    return series


def _month_back(today: date, months: int) -> tuple:
    index = today.year * 12 + (today.month - 1) - months
    return index // 12, index % 12 + 1


def _monthly(records: List[NutritionRecord], today: date) -> NutritionSeries:
    series = NutritionSeries(MONTHLY)
    for offset in range(5, -1, -1):
        year, month = _month_back(today, offset)
        series.add_bucket(
            MONTH_LABELS[month - 1],
            (r for r in records if r.date.year == year and r.date.month == month),
        )
    return series


def aggregate(
    rows: Iterable,
    timeframe: str,
    today: Optional[date] = None,
    week_mode: str = WEEKS_LEGACY,
) -> NutritionSeries:
    records = _records(rows)
    today = today or date.today()

    if timeframe == DAILY:
        return _daily(records, today)
    if timeframe == WEEKLY:
        return _weekly(records, today, week_mode)
    if timeframe == MONTHLY:
        return _monthly(records, today)
    raise ValueError(f"Unknown timeframe: {timeframe!r}")


def overview(rows: Iterable, timeframe: str, today: Optional[date] = None) -> dict:
    """
    Headline totals above the charts.
    Daily is today's row; Weekly and Monthly sum the most recent 7 / 30 rows,
    whatever dates they carry.
    """
    records = sorted(_records(rows), key=lambda r: r.date)
    today = today or date.today()

    if timeframe == DAILY:
        selected = [r for r in records if r.date == today]
    elif timeframe == WEEKLY:
        selected = records[-OVERVIEW_WEEK_ROWS:]
    elif timeframe == MONTHLY:
        selected = records[-OVERVIEW_MONTH_ROWS:]
    else:
        raise ValueError(f"Unknown timeframe: {timeframe!r}")

    return {
        "calories": sum(r.total_calories for r in selected),
        "protein": sum(r.total_protein for r in selected),
        "carbs": sum(r.total_carbs for r in selected),
        "fats": sum(r.total_fats for r in selected),
    }


# ---------------------------------------------------------------------------
# MEALS / PLANS
# ---------------------------------------------------------------------------

def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _field(item, name):
    if isinstance(item, Mapping):
        return item.get(name) or 0
    return getattr(item, name, None) or 0


def sum_meals(meals: Iterable) -> dict:
    """Daily totals from logged meals, rounded to whole units."""
    meals = list(meals)
    return {
        "total_calories": _round_half_up(sum(_field(m, "calories") for m in meals)),
        "total_protein": _round_half_up(sum(_field(m, "protein") for m in meals)),
        "total_carbs": _round_half_up(sum(_field(m, "carbs") for m in meals)),
        "total_fats": _round_half_up(sum(_field(m, "fats") for m in meals)),
    }


def macro_breakdown(meals: Iterable) -> dict:
    """Share of carbs / protein / fats in the total macro grams, one decimal place."""
    meals = list(meals)
    carbs = sum(_field(m, "carbs") for m in meals)
    protein = sum(_field(m, "protein") for m in meals)
    fats = sum(_field(m, "fats") for m in meals)
    total = carbs + protein + fats

    def pct(part):
        return round(part / total * 100, 1) if total else 0.0

    return {
        "total_meals": len(meals),
        "total_calories": sum(_field(m, "calories") for m in meals),
        "total_carbs": carbs,
        "total_protein": protein,
        "total_fats": fats,
        "carbs_percentage": pct(carbs),
        "protein_percentage": pct(protein),
        "fats_percentage": pct(fats),
    }


ACTIVITY_MULTIPLIERS = {
    "sedentary": 1.2,
    "lightly_active": 1.375,
    "moderately_active": 1.55,
    "very_active": 1.725,
    "super_active": 1.9,
}

# goal -> (calorie factor on TDEE, grams of protein per kg)
GOAL_ADJUSTMENTS = {
    "weight_loss": (0.8, 2.0),
    "muscle_gain": (1.15, 2.2),
    "endurance": (1.0, 1.8),
    "flexibility": (1.0, 1.6),
    "general_fitness": (1.0, 1.8),
}
DEFAULT_GOAL = (1.0, 1.8)


def recommended_intake(
    age: Optional[int],
    gender: Optional[str],
    height: Optional[float],
    weight: Optional[float],
    activity_level: Optional[str],
    goal: Optional[str],
) -> dict:
    """
    Daily targets from the Mifflin-St Jeor BMR.
    Fats are 30% of calories and carbs take whatever energy is left.
    Without age, height and weight there is nothing to compute and all targets are 0.
    """
    if not age or not height or not weight:
        return {"calories": 0, "protein": 0, "carbs": 0, "fats": 0}

    bmr = 10 * weight + 6.25 * height - 5 * age
    bmr += 5 if (gender or "").lower() == "male" else -161

    tdee = bmr * ACTIVITY_MULTIPLIERS.get(activity_level or "", ACTIVITY_MULTIPLIERS["sedentary"])
    calorie_factor, protein_per_kg = GOAL_ADJUSTMENTS.get(goal or "", DEFAULT_GOAL)

    calories = tdee * calorie_factor
    protein = weight * protein_per_kg
    fats = calories * 0.3 / 9
    carbs = (calories - (protein * 4 + fats * 9)) / 4

    return {"calories": calories, "protein": protein, "carbs": carbs, "fats": fats}
