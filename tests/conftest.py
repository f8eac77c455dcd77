import pytest
from fastapi.testclient import TestClient
import os
import sys
import tempfile

# Add parent directory to path to allow importing app
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Configuration must be in place before the app is imported
os.environ["DATABASE_PATH"] = os.path.join(tempfile.gettempdir(), "invoice_api_lifespan.db")
os.environ["RATE_LIMIT_ENABLED"] = "false"

from app.main import app
from app.database import connect, get_db, init_db

ADMIN = {"username": "admin", "password": "s3cret-pass", "name": "Site Admin"}


@pytest.fixture
def db_path(tmp_path):
    """A fresh database file with the schema applied."""
    path = str(tmp_path / "test_invoicing.db")
    conn = connect(path)
    init_db(conn)
    conn.close()
    return path


@pytest.fixture
def conn(db_path):
    connection = connect(db_path)
    yield connection
    connection.close()


@pytest.fixture
def client(db_path):
    """
    Override the get_db dependency to use the test database.
    """
    def override_get_db():
        connection = connect(db_path)
        try:
            yield connection
            connection.commit()
        except Exception:
            connection.rollback()
            raise
        finally:
            connection.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    response = client.post("/api/auth/register", json=ADMIN)
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def invoice_payload():
    return {
        "customer": {"name": "Acme Corp", "email": " Billing@Acme.Example "},
        "issue_date": "2024-03-05T10:00:00",
        "items": [
            {"sequence_number": 1, "product_name": "Widget", "quantity": 2, "unit_price": 100},
            {"sequence_number": 2, "product_name": "Gadget", "quantity": 1, "unit_price": 50},
        ],
        "service_charge": {"kind": "fixed", "value": 0},
        "vat": {"kind": "percentage", "value": 15},
        "special_discount": 0,
    }
