from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from attendly.core.exceptions import NotFound
from attendly.database import get_db
from attendly.models.task import Task
from attendly.models.user import User
from attendly.routers.auth_deps import get_current_user
from attendly.schemas.badge import BadgeProgress, MyBadgesResponse, TaskResponse
from attendly.services.badge_service import BADGES, badge_details, evaluate_badges

router = APIRouter(prefix="/badges", tags=["Badges"])


@router.get("/me", response_model=MyBadgesResponse)
def my_badges(current_user: User = Depends(get_current_user)):
    return {
        "badges": [badge_details(b) for b in current_user.badges or []],
        "current_streak": current_user.current_streak or 0,
        "longest_streak": current_user.longest_streak or 0,
        "all_badges": {badge_id: badge_details(badge_id) for badge_id in BADGES},
    }


@router.post("/evaluate", response_model=BadgeProgress)
def evaluate(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Run the badge evaluation synchronously for the caller."""
    return evaluate_badges(db, current_user.id)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    task = db.get(Task, task_id)
    if not task or (task.payload or {}).get("user_id") != current_user.id:
        raise NotFound("Task not found")
    return task
