"""
Radio Atlas Test Suite

Test Files:
- conftest.py: Pytest fixtures and configuration
- fakes.py: Fake directory client, aggregator, audio backend and timers
- test_normalization.py / test_merger.py: Naming rules and Snapshot building
- test_directory.py / test_aggregator.py: Directory queries and fan-out
- test_cache.py: Snapshot cache and refresh passes
- test_playback.py / test_mpv_backend.py: Failover engine and mpv backend
- test_library.py / test_api.py / test_cli.py: Application core and surfaces

Running Tests:
    # Run all tests
    pytest

    # Run specific test file
    pytest tests/test_playback.py

    # Run specific test class
    pytest tests/test_playback.py::TestFailover

    # Run only unit tests
    pytest -m unit
"""
