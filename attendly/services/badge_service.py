"""
Attendance badges and on-time streaks.

Thresholds come from settings.badges; the catalogue below is read-only.
"""
import logging
from datetime import date, timedelta
from types import MappingProxyType
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from attendly.core.config import BadgeSettings, settings
from attendly.core.exceptions import NotFound
from attendly.models.attendance import AttendanceRecord, AttendanceStatus
from attendly.models.user import User, UserRole

logger = logging.getLogger(__name__)

ON_TIME_STREAK = "on-time-streak-5"
PERFECT_MONTH = "perfect-month"
EARLY_BIRD = "early-bird"
CHAMPION_PUNCTUALITY = "champion-punctuality"

BADGES = MappingProxyType({
    ON_TIME_STREAK: MappingProxyType({
        "name": "On-Time Streak 5 Days",
        "description": "Maintain 5 consecutive days of on-time attendance",
        "icon": "🏆",
    }),
    PERFECT_MONTH: MappingProxyType({
        "name": "Perfect Month",
        "description": "Perfect attendance for an entire month",
        "icon": "⭐",
    }),
    EARLY_BIRD: MappingProxyType({
        "name": "Early Bird",
        "description": "Check in before 9:00 AM for 10 days",
        "icon": "🐦",
    }),
    CHAMPION_PUNCTUALITY: MappingProxyType({
        "name": "Champion of Punctuality",
        "description": "No late arrivals for 30 consecutive days",
        "icon": "👑",
    }),
})


def badge_details(badge_id: str) -> Dict:
    return {"id": badge_id, **BADGES.get(badge_id, {"name": badge_id, "description": "", "icon": ""})}


def current_streak(records: List[AttendanceRecord], today: date) -> int:
    """Consecutive on-time days counted back from today or yesterday; any gap or late day ends it."""
    streak = 0
    expected = None
    for record in sorted(records, key=lambda r: r.date, reverse=True):
        if expected is None:
            if (today - record.date).days > 1:
                break
        elif record.date != expected:
            break
        if record.status != AttendanceStatus.PRESENT.value:
            break
        streak += 1
        expected = record.date - timedelta(days=1)
    return streak


def earned_badges(records: List[AttendanceRecord], streak: int, today: date,
                  thresholds: BadgeSettings) -> List[str]:
    earned = []
    if streak >= thresholds.streak_days:
        earned.append(ON_TIME_STREAK)

    month_records = [r for r in records if r.date.year == today.year and r.date.month == today.month]
    if (
        len(month_records) >= thresholds.perfect_month_min_days
        and all(r.status == AttendanceStatus.PRESENT.value for r in month_records)
    ):
        earned.append(PERFECT_MONTH)

    early = [r for r in records if r.check_in_time and r.check_in_time.hour < thresholds.early_bird_hour]
    if len(early) >= thresholds.early_bird_count:
        earned.append(EARLY_BIRD)

    window_start = today - timedelta(days=thresholds.punctuality_window_days)
    window = [r for r in records if r.date >= window_start]
    if (
        len(window) >= thresholds.punctuality_min_days
        and all(r.status != AttendanceStatus.LATE.value for r in window)
    ):
        earned.append(CHAMPION_PUNCTUALITY)
    return earned


def evaluate_badges(db: Session, user_id: int, today: Optional[date] = None,
                    thresholds: Optional[BadgeSettings] = None) -> Dict:
    """Recompute streaks and award new badges. Badges are never revoked."""
    today = today or date.today()
    thresholds = thresholds or settings.badges

    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    if user.role != UserRole.EMPLOYEE:
        return {"badges": list(user.badges or []), "current_streak": user.current_streak,
                "longest_streak": user.longest_streak}

    lookback = max(thresholds.punctuality_window_days, today.day)
    records = (
        db.query(AttendanceRecord)
        .filter(
            AttendanceRecord.user_id == user_id,
            AttendanceRecord.date >= today - timedelta(days=lookback),
            AttendanceRecord.date <= today,
        )
        .order_by(AttendanceRecord.date)
        .all()
    )

    streak = current_streak(records, today)
    badges = list(user.badges or [])
    newly_earned = [b for b in earned_badges(records, streak, today, thresholds) if b not in badges]

    try:
        user.current_streak = streak
        user.longest_streak = max(user.longest_streak or 0, streak)
        if newly_earned:
            user.badges = badges + newly_earned
        db.commit()
    except Exception:
        db.rollback()
        raise

    if newly_earned:
        logger.info(f"User {user_id} earned badges: {', '.join(newly_earned)}")
    return {
        "badges": list(user.badges or []),
        "current_streak": user.current_streak,
        "longest_streak": user.longest_streak,
    }


def badge_task_handler(db: Session, payload: Dict) -> Dict:
    return evaluate_badges(db, int(payload["user_id"]))
