"""
Router for wallet, top-ups and donations
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_active_user
from src.database import get_db
from src.pagination import LimitOffsetParams, limit_offset
from src.rate_limit import default_rate_limit
from src.users.models import User
from src.wallet.dependencies import get_wallet_service
from src.wallet.schemas import (
    DonateRequest,
    DonationResponse,
    TopUpRequest,
    TransactionListResponse,
    TransactionResponse,
    WalletResponse,
)
from src.wallet.service import WalletService

router = APIRouter(prefix="/wallet", tags=["Wallet"], dependencies=[Depends(default_rate_limit)])


@router.get("", response_model=WalletResponse)
async def get_wallet(
    current_user: User = Depends(get_current_active_user),
    service: WalletService = Depends(get_wallet_service),
    db: AsyncSession = Depends(get_db),
):
    """Caller's wallet, created with a zero balance on first access."""
    return await service.get_or_create_wallet(current_user.id, db)


@router.post("/topup", response_model=WalletResponse)
async def top_up(
    request: TopUpRequest,
    current_user: User = Depends(get_current_active_user),
    service: WalletService = Depends(get_wallet_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Add funds to the caller's wallet

    - **amount**: positive integer in internal currency
    """
    return await service.top_up(current_user.id, request.amount, db)


@router.post("/donate/{post_id}", response_model=DonationResponse)
async def donate_to_post(
    post_id: str,
    request: DonateRequest,
    current_user: User = Depends(get_current_active_user),
    service: WalletService = Depends(get_wallet_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Donate to the creator of a post

    Fails with 400 when the post is unknown, is the caller's own post or
    the balance is too low.
    """
    donor_wallet, _ = await service.donate(current_user.id, post_id, request.amount, db)
    return DonationResponse(
        message="Donation sent successfully",
        wallet=WalletResponse.model_validate(donor_wallet),
        amount=request.amount,
    )


@router.get("/transactions", response_model=TransactionListResponse)
async def get_transactions(
    page: LimitOffsetParams = Depends(limit_offset(default=50, maximum=100)),
    current_user: User = Depends(get_current_active_user),
    service: WalletService = Depends(get_wallet_service),
    db: AsyncSession = Depends(get_db),
):
    transactions = await service.get_transactions(current_user.id, page.limit, page.offset, db)
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        count=len(transactions),
    )
