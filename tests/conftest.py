"""Pytest configuration and fixtures for bomcheck tests"""
import pytest

from bomcheck.catalogue import clear_cache, load_catalogue

@pytest.fixture(autouse=True)
def fresh_catalogues():
    """Drop cached catalogues so each test sees its own schema dir"""
    clear_cache()
    yield
    clear_cache()

@pytest.fixture
def v15():
    """Compiled CycloneDX 1.5 root schema"""
    return load_catalogue("1.5").root

@pytest.fixture
def minimal_bom():
    return {"bomFormat": "CycloneDX", "specVersion": "1.5"}
