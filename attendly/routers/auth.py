import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from attendly.core.exceptions import AuthenticationError
from attendly.database import get_db
from attendly.models.user import User, UserRole
from attendly.routers.auth_deps import get_current_user
from attendly.schemas.auth import LoginRequest, Token, UserCreate, UserResponse, UserUpdate
from attendly.services import auth as auth_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


def _next_employee_code(db: Session) -> str:
    number = db.query(User).count() + 1
    code = f"EMP{number:03d}"
    while db.query(User).filter(User.employee_code == code).first():
        number += 1
        code = f"EMP{number:03d}"
    return code


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=email,
        hashed_password=auth_service.get_password_hash(payload.password),
        name=payload.name.strip(),
        role=UserRole.EMPLOYEE,
        department=payload.department,
        employee_code=_next_employee_code(db),
        badges=[],
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Email already registered")
    db.refresh(user)
    logger.info(f"Registered {user.role.value} {user.employee_code}")
    return user


@router.post("/login", response_model=Token)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    # JSON body instead of form-data for frontend compatibility
    user = db.query(User).filter(User.email == login_data.email.lower()).first()
    if not user or not auth_service.verify_password(login_data.password, user.hashed_password):
        logger.info("Failed login attempt", extra={"email": login_data.email})
        raise AuthenticationError("Incorrect email or password")
    if not user.is_active:
        raise HTTPException(status_code=400, detail="User is inactive")

    access_token = auth_service.create_access_token(data={
        "sub": user.email,
        "role": user.role.value,
        "user_id": user.id,
    })
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "role": user.role.value,
            "employee_code": user.employee_code,
        }
    }


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/profile", response_model=UserResponse)
def update_profile(
    update_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update current user's profile information."""
    if update_data.name:
        current_user.name = update_data.name.strip()
    if update_data.department is not None:
        current_user.department = update_data.department or None

    db.commit()
    db.refresh(current_user)
    return current_user
