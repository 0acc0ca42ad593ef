"""Auth routes: register, login, current user."""
import logging

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..auth_utils import create_jwt, decode_jwt
from ..config import PASSWORD_MIN_LENGTH, USERNAME_MAX_LENGTH, USERNAME_MIN_LENGTH
from ..database import get_db
from ..models import User
from ..services.user_service import InvalidCredentials, UserAlreadyExists, create_user, verify_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class CredentialsRequest(BaseModel):
    username: str = Field(min_length=USERNAME_MIN_LENGTH, max_length=USERNAME_MAX_LENGTH)
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)


class AuthResponse(BaseModel):
    user_id: int
    token: str


class UserResponse(BaseModel):
    id: int
    username: str
    created_at: str


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(body: CredentialsRequest, db: Session = Depends(get_db)):
    try:
        user = create_user(db, body.username, body.password)
    except UserAlreadyExists:
        raise HTTPException(status_code=409, detail="User already exists")
    return AuthResponse(user_id=user.id, token=create_jwt(user.id))


@router.post("/login", response_model=AuthResponse)
def login(body: CredentialsRequest, db: Session = Depends(get_db)):
    try:
        user = verify_user(db, body.username, body.password)
    except InvalidCredentials:
        logger.warning("Failed login for %s", body.username)
        raise HTTPException(status_code=401, detail="Invalid username or password")
    return AuthResponse(user_id=user.id, token=create_jwt(user.id))


def get_current_user(
    authorization: str | None = Header(None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> User:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid token")
    token = authorization.split(" ", 1)[1]
    user_id = decode_jwt(token)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


@router.get("/me", response_model=UserResponse)
def auth_me(user: User = Depends(get_current_user)):
    return UserResponse(
        id=user.id,
        username=user.username,
        created_at=user.created_at.isoformat() if user.created_at else "",
    )
