import os
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

# Set test database before any imports
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

from app.main import build_services, create_app
from app.config import get_settings
from chain.chains import get_network
from chain.ens import ENSAddresses, ENSContractManager
from chain.pay import BasePayService
from db.base import Base
from db.session import engine
from tests.addresses import OTHER


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create all tables before tests run, drop after all tests complete."""
    # Import models to ensure they are registered with Base
    from db.models import Activity  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    """Clean tables between tests to ensure isolation."""
    yield
    from db.session import SessionLocal
    from db.models import Activity

    with SessionLocal() as db:
        db.query(Activity).delete()
        db.commit()


@pytest.fixture(autouse=True)
def _configure_env(monkeypatch, request):
    monkeypatch.setenv("SIGNER_PRIVATE_KEY", "")
    monkeypatch.setenv("GASLESS_ENABLED", "false")
    get_settings.cache_clear()
    if request.node.get_closest_marker("use_llm"):
        yield
        get_settings.cache_clear()
        return
    monkeypatch.setenv("LLM_ENABLED", "false")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def ens_manager():
    """ENS contracts stand-in: every name is unregistered and costs 0.01 ETH per year."""
    manager = MagicMock(spec=ENSContractManager)
    manager.chain_id = 11155111
    manager.addresses = ENSAddresses.from_settings(get_settings())
    manager.is_available.return_value = True
    manager.rent_price.return_value = (10**16, 0)
    manager.min_commitment_age.return_value = 60
    manager.owner.return_value = "0x0000000000000000000000000000000000000000"
    manager.resolver.return_value = "0x0000000000000000000000000000000000000000"
    manager.expiry.return_value = None
    manager.resolve.return_value = None
    manager.reverse.return_value = None
    manager.text.return_value = ""
    manager.contenthash.return_value = None
    manager.addr.return_value = None
    manager.make_commitment.return_value = b"\x01" * 32
    for write in ("commit", "register", "renew", "set_text", "set_addr", "set_resolver", "set_owner"):
        getattr(manager, write).return_value = "0x" + "cd" * 32
    return manager


@pytest.fixture
def pay_service():
    pay = MagicMock(spec=BasePayService)
    pay.chain_id = 84532
    pay.network = get_network(84532)
    pay.gasless_enabled = False
    pay.send.return_value = {
        "tx_hash": "0x" + "ab" * 32,
        "mode": "standard",
        "tx": {"to": OTHER, "value": 10**17},
    }
    return pay


@pytest.fixture
def services(ens_manager, pay_service):
    return build_services(get_settings(), ens_manager=ens_manager, pay=pay_service)


@pytest.fixture
def client(services):
    app = create_app()
    app.state.services = services
    with TestClient(app) as client:
        yield client
