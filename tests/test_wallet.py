import pytest
from sqlalchemy import select, update

from src.cache import post_key
from src.users.models import UserRole
from src.wallet.exceptions import InsufficientBalanceException
from src.wallet.models import Transaction, TransactionType, Wallet
from src.wallet.service import WalletService
from tests.utils import API, create_post, create_user, register


class RacingWalletService(WalletService):
    """Spends the donor's balance from another session just before the rows are locked."""

    def __init__(self, redis, session_factory, donor_id, balance_left):
        super().__init__(redis)
        self.session_factory = session_factory
        self.donor_id = donor_id
        self.balance_left = balance_left

    async def _lock_wallets(self, user_ids, db):
        async with self.session_factory() as other:
            await other.execute(
                update(Wallet).where(Wallet.user_id == self.donor_id).values(balance=self.balance_left)
            )
            await other.commit()
        return await super()._lock_wallets(user_ids, db)


async def top_up(client, user, amount):
    return await client.post(f"{API}/wallet/topup", json={"amount": amount}, headers=user["headers"])


async def test_donation_moves_balance_and_records_ledger(client):
    u1 = await register(client, "u1")
    u2 = await register(client, "u2")
    p2 = await create_post(client, u2["headers"])

    response = await top_up(client, u1, 100)
    assert response.status_code == 200
    assert response.json()["balance"] == 100

    response = await client.post(f"{API}/wallet/donate/{p2['id']}", json={"amount": 30}, headers=u1["headers"])
    assert response.status_code == 200
    body = response.json()
    assert body["amount"] == 30
    assert body["wallet"]["balance"] == 70

    response = await client.get(f"{API}/wallet", headers=u1["headers"])
    assert response.json()["balance"] == 70
    response = await client.get(f"{API}/wallet", headers=u2["headers"])
    assert response.json()["balance"] == 30

    response = await client.get(f"{API}/wallet/transactions", headers=u1["headers"])
    donations = [t for t in response.json()["transactions"] if t["type"] == "donation"]
    assert len(donations) == 1
    assert donations[0]["amount"] == -30
    assert donations[0]["balance_before"] == 100
    assert donations[0]["balance_after"] == 70
    assert donations[0]["post_id"] == p2["id"]

    response = await client.get(f"{API}/wallet/transactions", headers=u2["headers"])
    earned = response.json()["transactions"]
    assert [(t["type"], t["amount"]) for t in earned] == [("earn", 30)]


async def test_wallet_created_on_first_access(client):
    u1 = await register(client, "u1")
    response = await client.get(f"{API}/wallet", headers=u1["headers"])
    assert response.status_code == 200
    assert response.json()["balance"] == 0
    assert response.json()["user_id"] == u1["id"]


async def test_top_up_rejects_non_positive_amount(client):
    u1 = await register(client, "u1")
    assert (await top_up(client, u1, 0)).status_code == 400
    assert (await top_up(client, u1, -5)).status_code == 400


async def test_donation_failures_leave_balances_untouched(client):
    u1 = await register(client, "u1")
    u2 = await register(client, "u2")
    p2 = await create_post(client, u2["headers"])
    await top_up(client, u1, 10)

    response = await client.post(f"{API}/wallet/donate/{p2['id']}", json={"amount": 11}, headers=u1["headers"])
    assert response.status_code == 400

    response = await client.post(f"{API}/wallet/donate/unknown", json={"amount": 1}, headers=u1["headers"])
    assert response.status_code == 400

    own = await create_post(client, u1["headers"])
    response = await client.post(f"{API}/wallet/donate/{own['id']}", json={"amount": 1}, headers=u1["headers"])
    assert response.status_code == 400

    assert (await client.get(f"{API}/wallet", headers=u1["headers"])).json()["balance"] == 10
    assert (await client.get(f"{API}/wallet", headers=u2["headers"])).json()["balance"] == 0


async def test_donation_rechecks_balance_under_lock(session_factory, redis):
    donor = await create_user(session_factory, "donor")
    creator = await create_user(session_factory, "maker", UserRole.CREATOR)
    await redis.hset(post_key("p1"), mapping={"id": "p1", "creator_id": creator["id"]})

    service = RacingWalletService(redis, session_factory, donor["id"], balance_left=10)
    async with session_factory() as db:
        await WalletService(redis).top_up(donor["id"], 50, db)
        with pytest.raises(InsufficientBalanceException):
            await service.donate(donor["id"], "p1", 30, db)

    async with session_factory() as db:
        wallets = {w.user_id: w.balance for w in (await db.execute(select(Wallet))).scalars()}
        assert wallets == {donor["id"]: 10, creator["id"]: 0}
        donations = await db.execute(select(Transaction).where(Transaction.type == TransactionType.DONATION))
        assert donations.scalars().all() == []
