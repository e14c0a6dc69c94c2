import os

import pytest


@pytest.fixture(scope="session")
def _marketplace_domain(request):
    """Initialize the marketplace domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from marketplace.domain import marketplace

    marketplace.init()
    return marketplace


@pytest.fixture(scope="session", autouse=True)
def setup_db(_marketplace_domain):
    from marketplace.utils.db import drop_db, setup_db

    setup_db(_marketplace_domain)

    yield

    drop_db(_marketplace_domain)


@pytest.fixture(autouse=True)
def image_dir(tmp_path, monkeypatch):
    """Point listing image storage at a per-test directory."""
    root = tmp_path / "uploads"
    root.mkdir()
    monkeypatch.setenv("MARKETPLACE_IMAGE_DIR", str(root))
    return root


@pytest.fixture(autouse=True)
def run_around_tests(_marketplace_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _marketplace_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_user():
    from uuid import uuid4

    from protean import current_domain

    from marketplace.user.registration import RegisterUser

    def _make(first_name="Test", last_name="User", email=None, role="User"):
        command = RegisterUser(
            first_name=first_name,
            last_name=last_name,
            email=email or f"user-{uuid4().hex[:8]}@example.com",
            role=role,
        )
        return current_domain.process(command, asynchronous=False)

    return _make


@pytest.fixture()
def make_phone():
    from protean import current_domain

    from marketplace.phone.listing import CreatePhone

    def _make(seller_id, title="iPhone 8 64GB", brand="Apple", price=150.0, stock=5, image=None):
        command = CreatePhone(
            seller_id=seller_id,
            title=title,
            brand=brand,
            price=price,
            stock=stock,
            image=image,
        )
        return current_domain.process(command, asynchronous=False)

    return _make


@pytest.fixture()
def seller_id(make_user):
    return make_user(first_name="Sally", last_name="Seller")


@pytest.fixture()
def buyer_id(make_user):
    return make_user(first_name="Bob", last_name="Buyer")


@pytest.fixture()
def admin_id(make_user):
    return make_user(first_name="Ada", last_name="Admin", role="Admin")


@pytest.fixture()
def address():
    return {
        "street": "1 George St",
        "city": "Sydney",
        "state": "NSW",
        "zip": "2000",
        "country": "Australia",
    }
