"""
Pytest fixtures for coffeewatch tests.

Fixtures are organized by test category:
- workspace.py: workspace roots, settings files, fake compiler, notifier
- watcher.py: SaveWatcher fixtures
"""
