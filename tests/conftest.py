"""Root conftest — shared fixtures."""

import os

# Keep the default app offline and deterministic during tests
os.environ["ALGOD_URL"] = "http://algod.test"
os.environ["POE_APP_ID"] = ""
os.environ["NUMBERS_APP_ID"] = ""
os.environ["SUM_SERVICE_URL"] = ""
os.environ["OFFCHAIN_MNEMONICS"] = ""

import pytest

from smart_contracts.chain import AlgodReader
from tests.fakes import ALGOD_URL, FakeAlgod


@pytest.fixture
def algod():
    return FakeAlgod()


@pytest.fixture
def reader(algod):
    return AlgodReader(ALGOD_URL, session=algod)
