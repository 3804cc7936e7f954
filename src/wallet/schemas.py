from datetime import datetime
from typing import List, Optional

from src.models import CustomModel
from src.wallet.models import TransactionType


class WalletResponse(CustomModel):
    id: str
    user_id: str
    balance: int
    created_at: datetime
    updated_at: Optional[datetime] = None


class TopUpRequest(CustomModel):
    amount: int


class DonateRequest(CustomModel):
    amount: int


class DonationResponse(CustomModel):
    message: str
    wallet: WalletResponse
    amount: int


class TransactionResponse(CustomModel):
    id: str
    user_id: str
    post_id: Optional[str] = None
    type: TransactionType
    amount: int
    balance_before: int
    balance_after: int
    created_at: datetime


class TransactionListResponse(CustomModel):
    transactions: List[TransactionResponse]
    count: int
