import copy

import pytest
from prometheus_client import CollectorRegistry

from xstate_lite import StateMachine
from xstate_lite.samples import TRAFFIC_LIGHT, TRAFFIC_LIGHT_GUARDS


@pytest.fixture
def traffic_light_data():
    """Fresh copy of the sample document, safe to modify per test"""
    return copy.deepcopy(TRAFFIC_LIGHT)


@pytest.fixture
def traffic_light(traffic_light_data):
    return StateMachine.from_dict(traffic_light_data, TRAFFIC_LIGHT_GUARDS)


@pytest.fixture
def registry():
    return CollectorRegistry()
