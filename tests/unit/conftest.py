import io

import pytest
from rich.console import Console

from tests.fakes import FakeCluster


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=200)


@pytest.fixture
def cluster():
    return FakeCluster({"test-topic": 3})
