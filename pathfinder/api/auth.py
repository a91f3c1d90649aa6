import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pathfinder.core.auth import create_token, hash_password, verify_password
from pathfinder.core.database import get_db
from pathfinder.models.orm import User

router = APIRouter()
logger = logging.getLogger(__name__)

VALID_ROLES = ("student", "IT Professional", "career_switcher")
ROLE_ALIASES = {"professional": "IT Professional"}


class SignupIn(BaseModel):
    name: str
    email: EmailStr
    password: str
    role: str


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    role: str


class TokenOut(BaseModel):
    token: str
    user: UserOut


def _token_response(user: User) -> TokenOut:
    return TokenOut(
        token=create_token(user.id, user.role),
        user=UserOut(id=user.id, name=user.name, email=user.email, role=user.role),
    )


@router.post("/signup", response_model=TokenOut)
async def signup(payload: SignupIn, db: AsyncSession = Depends(get_db)):
    if not payload.name or not payload.password or not payload.role:
        raise HTTPException(400, "Missing fields")
    role = ROLE_ALIASES.get(payload.role, payload.role)
    if role not in VALID_ROLES:
        raise HTTPException(400, "Invalid role")
    if await db.scalar(select(User).where(User.email == payload.email)):
        raise HTTPException(409, "Email already registered")
    user = User(name=payload.name, email=payload.email, password_hash=hash_password(payload.password), role=role)
    db.add(user)
    await db.commit()
    logger.info(f"Registered user {user.id} ({role})")
    return _token_response(user)


@router.post("/login", response_model=TokenOut)
async def login(payload: LoginIn, db: AsyncSession = Depends(get_db)):
    user = await db.scalar(select(User).where(User.email == payload.email))
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(401, "Invalid credentials")
    return _token_response(user)
