"""
tests/test_database.py
───────────────────────
Supabase client factory, with ``create_client`` patched.
"""

from unittest.mock import MagicMock, patch

import pytest

from core.config import get_settings
from core.database import get_supabase_client


@pytest.fixture(autouse=True)
def _fresh_singleton():
    get_supabase_client.cache_clear()
    yield
    get_supabase_client.cache_clear()


def test_client_is_created_once_with_query_timeout() -> None:
    settings = get_settings()
    with patch("core.database.create_client", return_value=MagicMock()) as create:
        first = get_supabase_client()
        second = get_supabase_client()

    assert first is second
    create.assert_called_once()
    url, key = create.call_args.args
    assert (url, key) == (settings.SUPABASE_URL, settings.SUPABASE_KEY)
    options = create.call_args.kwargs["options"]
    assert options.postgrest_client_timeout == settings.SUPABASE_TIMEOUT == 10.0
