from schemas import Purchase, Totals
from tests.conftest import BUYER, SELLER


async def test_seller_without_purchases_has_zero_totals(stats):
    assert await stats.seller_totals(SELLER) == Totals(total_amount=0, paid_amount=0, pending_amount=0)


async def test_marketplace_without_purchases_has_zero_totals(stats):
    assert await stats.marketplace_totals() == Totals()


async def test_totals_split_by_status(stats, checkout):
    for transaction_id, seller, amount in [
        ("pi_1", SELLER, 10),
        ("pi_2", SELLER, 25),
        ("pi_3", "other@medimarket.com", 40),
    ]:
        await checkout.finalize_purchase(
            Purchase(transaction_id=transaction_id, seller_email=seller, total_amount=amount), BUYER
        )
    await checkout.update_status("pi_2", "paid")

    assert await stats.seller_totals(SELLER) == Totals(total_amount=35, paid_amount=25, pending_amount=10)
    assert await stats.marketplace_totals() == Totals(total_amount=75, paid_amount=25, pending_amount=50)
