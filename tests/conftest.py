import pytest

from infra_sizing import sizing_planner
from infra_sizing.sizing_planner import SizingPlanner


@pytest.fixture(scope="session", autouse=True)
def configure_test_planner():
    """
    Replace the global planner with one built from the stock catalogs.

    The module level planner picks up a pricing override named by
    INFRA_SIZING_PRICING at import time. Tests must price against the default
    list prices no matter what the developer's environment has set.
    """
    test_planner = SizingPlanner()
    sizing_planner.planner = test_planner

    yield test_planner
