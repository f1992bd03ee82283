"""
Root pytest configuration.

Registers the custom markers used across the test directories.
"""


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "memory: marks memory/leak detection tests")
    config.addinivalue_line("markers", "concurrency: marks multi-threaded tests")
