import uuid

import jwt
import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from cart import CartLedger
from catalog import Catalog
from checkout import CheckoutOrchestrator
from database import Database
from main import create_app
from promotion import PromotionCoordinator
from schemas import Medicine
from settings import settings
from stats import StatisticsAggregator

SELLER = "seller@medimarket.com"
BUYER = "buyer@medimarket.com"
ADMIN = "admin@medimarket.com"


@pytest.fixture
def database():
    return Database(AsyncMongoMockClient(), f"medimarket_{uuid.uuid4().hex}")


@pytest.fixture
def catalog(database):
    return Catalog(database)


@pytest.fixture
def cart(database, catalog):
    return CartLedger(database, catalog)


@pytest.fixture
def promotion(database, catalog):
    return PromotionCoordinator(database, catalog)


@pytest.fixture
def checkout(database, cart):
    return CheckoutOrchestrator(database, cart)


@pytest.fixture
def stats(database):
    return StatisticsAggregator(database)


@pytest.fixture
async def paracetamol(catalog):
    await catalog.create_listing(Medicine(name="Paracetamol", price=5), SELLER)
    return "Paracetamol"


def token_for(email, role="buyer"):
    return jwt.encode({"email": email, "role": role}, settings.ACCESS_TOKEN_SECRET, algorithm="HS256")


@pytest.fixture
def app(database):
    return create_app(database)


@pytest.fixture
def client_for(app):
    """Factory for API clients authenticated as a given principal."""
    clients = []

    def make(email=None, role="buyer"):
        cookies = {"token": token_for(email, role)} if email else None
        client = TestClient(app, cookies=cookies)
        client.__enter__()
        clients.append(client)
        return client

    yield make
    for client in clients:
        client.__exit__(None, None, None)
