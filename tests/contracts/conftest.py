from collections.abc import Generator

import pytest
from algopy_testing import AlgopyTestContext, algopy_testing_context


@pytest.fixture()
def context() -> Generator[AlgopyTestContext, None, None]:
    with algopy_testing_context() as ctx:
        yield ctx


@pytest.fixture()
def emitted(monkeypatch):
    """Every struct passed to arc4.emit during the test, in order."""
    from algopy import arc4

    events = []
    monkeypatch.setattr(arc4, "emit", lambda event, *args: events.append(event))
    return events
