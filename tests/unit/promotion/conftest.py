"""
Unit Test Fixtures for Promotion Service

Uses PromotionTestDataFactory from the data contract.
"""

import pytest

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.promotion.data_contract import PromotionTestDataFactory


@pytest.fixture
def factory():
    """Provide test data factory"""
    return PromotionTestDataFactory()
