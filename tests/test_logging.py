import pytest
from structlog.contextvars import get_contextvars

from vidfed.logging import configure_logging, session_context


class TestLogging:
    def test_rejects_unknown_level(self):
        with pytest.raises(ValueError):
            configure_logging("LOUD")

    def test_accepts_lowercase_level(self):
        configure_logging("debug", colors=False)

    def test_session_version_is_bound_for_the_round(self):
        with session_context(7):
            assert get_contextvars()["session_version"] == 7
        assert "session_version" not in get_contextvars()
