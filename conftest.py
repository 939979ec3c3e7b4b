"""Shared fixtures. The EV table takes a few seconds to build, so it is built once."""
import pytest

from ev_table import compute_ev_table


@pytest.fixture(scope="session")
def ev_table():
    return compute_ev_table()
