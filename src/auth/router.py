"""
Router for Auth module
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_auth_service
from src.auth.schemas import AuthResponse, LoginRequest, RegisterRequest
from src.auth.service import AuthService
from src.database import get_db

router = APIRouter(tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new viewer account

    - **409** if the email or username is already taken
    """
    return await service.register_user(data, db)


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    db: AsyncSession = Depends(get_db),
):
    """Login with email and password; returns a bearer token"""
    return await service.login(data, db)
