import pytest


@pytest.fixture(autouse=True)
def fresh_process_state():
    """Process-wide caches must not carry rows from a rolled-back test."""
    from django.core.cache import cache

    from options.installation import forget_tables_check
    from options.repository import reset_option_repository
    from plugins.manager import reset_plugin_manager

    def reset():
        reset_option_repository()
        reset_plugin_manager()
        forget_tables_check()
        cache.clear()

    reset()
    yield
    reset()
