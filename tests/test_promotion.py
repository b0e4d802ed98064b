import pytest

from errors import Conflict, NotFound
from schemas import ADVERTISED, NOT_ADVERTISED, Advertisement, Slider
from tests.conftest import SELLER


async def flags(database, name):
    medicine = await database["medicine"].find_one({"name": name})
    advertisement = await database["advertisement"].find_one({"name": name})
    return medicine["promotion_status"], advertisement["promotion_status"]


@pytest.fixture
async def requested(promotion, paracetamol):
    await promotion.request_advertisement(Advertisement(name=paracetamol, image="ad.png"), SELLER)
    return paracetamol


async def test_request_is_stored_not_advertised(database, promotion, requested):
    requests = await promotion.advertisement_requests()

    assert len(requests) == 1
    assert requests[0]["submitted_by"] == SELLER
    assert await flags(database, requested) == (NOT_ADVERTISED, NOT_ADVERTISED)


async def test_duplicate_request_conflicts(promotion, requested):
    with pytest.raises(Conflict):
        await promotion.request_advertisement(Advertisement(name=requested), SELLER)


async def test_first_toggle_promotes(database, promotion, requested):
    result = await promotion.toggle(requested, Slider(image="banner.png"))

    assert "inserted_id" in result
    slides = await promotion.active_slides()
    assert [(s["name"], s["image"]) for s in slides] == [(requested, "banner.png")]
    assert await flags(database, requested) == (ADVERTISED, ADVERTISED)


async def test_second_toggle_demotes(database, promotion, requested):
    await promotion.toggle(requested, Slider(image="banner.png"))

    result = await promotion.toggle(requested, Slider())

    assert result["deleted_count"] == 1
    assert await promotion.active_slides() == []
    assert await flags(database, requested) == (NOT_ADVERTISED, NOT_ADVERTISED)


async def test_even_number_of_toggles_ends_demoted(database, promotion, requested):
    for _ in range(4):
        await promotion.toggle(requested, Slider())

    assert await database["slider"].find_one({"name": requested}) is None
    assert await flags(database, requested) == (NOT_ADVERTISED, NOT_ADVERTISED)


async def test_promotion_without_request_still_flags_listing(database, promotion, paracetamol):
    await promotion.toggle(paracetamol, Slider())

    medicine = await database["medicine"].find_one({"name": paracetamol})
    assert medicine["promotion_status"] == ADVERTISED
    assert await database["advertisement"].count_documents({}) == 0


async def test_promoting_unknown_medicine_fails(promotion):
    with pytest.raises(NotFound):
        await promotion.toggle("Unknown", Slider())

    assert await promotion.active_slides() == []
