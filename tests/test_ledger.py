"""Test the in-memory ledger: at-most-once awards and atomic wallet updates.

Coverage: InMemoryLedger
"""

import asyncio
from datetime import date, datetime, timezone

import pytest

from cc_core_lib.exceptions import InsufficientBalanceError, NotFoundError
from tests.conftest import USER_ID


class TestAwards:
    @pytest.mark.asyncio
    async def test_first_award_credits_wallet(self, ledger):
        await ledger.open_wallet(USER_ID)
        result = await ledger.try_award(USER_ID, "cf-1", 8)
        assert result.granted
        assert result.coins_granted == 8
        assert result.coin_balance == 8
        assert (await ledger.get_wallet(USER_ID)).coin_balance == 8

    @pytest.mark.asyncio
    async def test_repeat_award_is_noop(self, ledger):
        await ledger.open_wallet(USER_ID)
        await ledger.try_award(USER_ID, "cf-1", 8)
        result = await ledger.try_award(USER_ID, "cf-1", 8)
        assert not result.granted
        assert result.coins_granted == 0
        assert result.coin_balance == 8
        assert len(await ledger.list_entries(USER_ID)) == 1

    @pytest.mark.asyncio
    async def test_concurrent_awards_pay_once(self, ledger):
        await ledger.open_wallet(USER_ID)
        results = await asyncio.gather(*(ledger.try_award(USER_ID, "cf-2", 10) for _ in range(20)))
        assert sum(1 for result in results if result.granted) == 1
        assert (await ledger.get_wallet(USER_ID)).coin_balance == 10

    @pytest.mark.asyncio
    async def test_zero_coin_award_still_recorded(self, ledger):
        await ledger.open_wallet(USER_ID)
        result = await ledger.try_award(USER_ID, "free-unit", 0)
        assert result.granted
        assert await ledger.has_awarded(USER_ID, "free-unit")

    @pytest.mark.asyncio
    async def test_negative_coins_rejected(self, ledger):
        await ledger.open_wallet(USER_ID)
        with pytest.raises(ValueError):
            await ledger.try_award(USER_ID, "cf-1", -1)

    @pytest.mark.asyncio
    async def test_award_without_wallet(self, ledger):
        with pytest.raises(NotFoundError) as exc_info:
            await ledger.try_award("ghost", "cf-1", 8)
        assert exc_info.value.entity == "wallet"

    @pytest.mark.asyncio
    async def test_open_wallet_is_idempotent(self, ledger):
        await ledger.open_wallet(USER_ID)
        await ledger.try_award(USER_ID, "cf-1", 8)
        wallet = await ledger.open_wallet(USER_ID)
        assert wallet.coin_balance == 8

    @pytest.mark.asyncio
    async def test_entries_are_per_user(self, ledger):
        await ledger.open_wallet("a")
        await ledger.open_wallet("b")
        await ledger.try_award("a", "cf-1", 8)
        assert await ledger.has_awarded("a", "cf-1")
        assert not await ledger.has_awarded("b", "cf-1")
        assert (await ledger.try_award("b", "cf-1", 8)).granted


class TestCoinEconomy:
    @pytest.mark.asyncio
    async def test_daily_claim_same_day(self, ledger):
        await ledger.open_wallet(USER_ID)
        first = await ledger.claim_daily_bonus(USER_ID, date(2026, 3, 9))
        second = await ledger.claim_daily_bonus(USER_ID, date(2026, 3, 9))
        assert first.granted and not second.granted
        assert (await ledger.get_wallet(USER_ID)).coin_balance == 5

    @pytest.mark.asyncio
    async def test_backdated_claim_cannot_repay_a_day(self, ledger):
        await ledger.open_wallet(USER_ID)
        days = [date(2026, 3, 10), date(2026, 3, 9), date(2026, 3, 10)]
        results = [await ledger.claim_daily_bonus(USER_ID, day) for day in days]
        assert [result.coins_awarded for result in results] == [5, 0, 0]
        wallet = await ledger.get_wallet(USER_ID)
        assert wallet.last_claim_date == date(2026, 3, 10)
        assert wallet.coin_balance == 5

    @pytest.mark.asyncio
    async def test_conversion_history_newest_first(self, ledger):
        await ledger.open_wallet(USER_ID)
        await ledger.try_award(USER_ID, "big-1", 600)
        await ledger.convert_to_credits(USER_ID, datetime(2026, 2, 1, tzinfo=timezone.utc))
        await ledger.try_award(USER_ID, "big-2", 1000)
        await ledger.convert_to_credits(USER_ID, datetime(2026, 3, 1, tzinfo=timezone.utc))

        history = await ledger.conversion_history(USER_ID)
        assert [record.credits_granted for record in history] == [2, 1]
        wallet = await ledger.get_wallet(USER_ID)
        assert (wallet.coin_balance, wallet.credit_balance) == (100, 3)

    @pytest.mark.asyncio
    async def test_failed_conversion_leaves_wallet(self, ledger):
        await ledger.open_wallet(USER_ID)
        await ledger.try_award(USER_ID, "cf-1", 8)
        with pytest.raises(InsufficientBalanceError):
            await ledger.convert_to_credits(USER_ID)
        assert (await ledger.get_wallet(USER_ID)).coin_balance == 8
        assert await ledger.conversion_history(USER_ID) == []
