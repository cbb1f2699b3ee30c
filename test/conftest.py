import argparse

import pytest

from oracle import ReferenceOracle


def pytest_addoption(parser):
    parser.addoption(
        "--vcd",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="whether to produce vcd files",
    )


@pytest.fixture
def reference_oracle():
    return ReferenceOracle(size=2)
