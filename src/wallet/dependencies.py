from fastapi import Depends
from redis import asyncio as aioredis

from src.cache import get_redis
from src.wallet.service import WalletService


def get_wallet_service(redis: aioredis.Redis = Depends(get_redis)) -> WalletService:
    return WalletService(redis)
