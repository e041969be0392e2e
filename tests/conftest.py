import pytest

from tests.fakes import BRAND, CREATOR
from vidfed.models import Partition


@pytest.fixture
def partitions() -> list[Partition]:
    return [Partition(BRAND, "brand"), Partition(CREATOR, "creator")]
