"""
Project-wide pytest configuration.

- Marketplace models are unmanaged in production; they are switched to
  managed here so the test database creates their tables
- Tests are auto-marked unit / integration by filename
- PostgreSQL flushes use CASCADE for transactional tests
"""

import pytest


def pytest_configure():
    """Let the test database create the marketplace tables."""
    from django.apps import apps

    for model in apps.get_app_config("marketplace").get_models():
        model._meta.managed = True


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_views.py, test_services.py, test_tasks.py, etc. → integration
    - test_models.py, test_content_safety.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_tasks.py",
        "test_notifications.py",
        "test_consumers.py",
        "test_concurrency.py",
        "test_directory.py",
        "test_ledger.py",
        "test_circuit_breaker.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_content_safety.py",
        "test_ports.py",
        "test_exceptions.py",
        "test_adapters.py",
    ]

    for item in items:
        # Skip if test already has unit/integration marker
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            # Default: integration (safe for Django where most tests hit DB)
            item.add_marker(pytest.mark.integration)


def _patch_postgresql_flush_for_cascade():
    """
    Patch PostgreSQL flush to always use CASCADE.

    TransactionTestCase resets the database with TRUNCATE, which fails
    without CASCADE when tables have foreign key constraints.
    """
    from django.db.backends.postgresql import operations

    original_sql_flush = operations.DatabaseOperations.sql_flush

    def sql_flush_with_cascade(
        self, style, tables, *, reset_sequences=False, allow_cascade=False
    ):
        return original_sql_flush(
            self, style, tables, reset_sequences=reset_sequences, allow_cascade=True
        )

    operations.DatabaseOperations.sql_flush = sql_flush_with_cascade


# Apply the patch when conftest is loaded
_patch_postgresql_flush_for_cascade()
