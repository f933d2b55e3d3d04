"""
Pytest configuration and fixtures for coffeewatch tests.

Specialized fixtures are organized in the fixtures/ directory:
- fixtures.workspace: workspace roots, settings files, fake compiler, notifier
- fixtures.watcher: SaveWatcher fixtures
"""

# Load fixture modules
pytest_plugins = [
    "tests.fixtures.workspace",
    "tests.fixtures.watcher",
]
