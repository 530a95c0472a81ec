from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from pocketa.db.store import RecordStore
from pocketa.deps import get_store
from pocketa.services import users as user_service

router = APIRouter()


class RegisterRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    name: str = ""


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, store: RecordStore = Depends(get_store)):
    user = await user_service.register_user(store, body.email, body.password, body.name)
    return {
        "message": "User registered successfully",
        "token": user_service.token_for_user(user),
        "user": user_service.user_out(user),
    }


@router.post("/login")
async def login(body: LoginRequest, store: RecordStore = Depends(get_store)):
    """Exchange email and password for a 24 hour bearer token."""
    user = await user_service.authenticate(store, body.email, body.password)
    return {
        "message": "Login successful",
        "token": user_service.token_for_user(user),
        "user": user_service.user_out(user),
    }
