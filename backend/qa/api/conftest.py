"""
Fixtures para tests de integración API.
Usa TestClient de FastAPI contra la app real; la BD es la SQLite en memoria
que prepara qa/conftest.py (esquema nuevo en cada test).
"""
import pytest
from fastapi.testclient import TestClient

from gestion_insumos.main import app


@pytest.fixture(scope="session")
def client():
    """Cliente HTTP de la API."""
    return TestClient(app)
