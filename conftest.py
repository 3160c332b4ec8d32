"""
Pytest configuration for the BFI test suite.

    python -m pytest                 # everything
    python -m pytest -m "not hang"   # skip never-terminating programs

Programs that never leave their loop are always run with a step budget; the
``hang`` marker only exists so they can be deselected when profiling.
"""


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers",
        "hang: runs a never-terminating program under a step budget")
