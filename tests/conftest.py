import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_structlog():
    """
    Each test starts and ends with structlog's default configuration.

    The CLI and the server bind structlog to sys.stderr when they configure it,
    and under capsys that is a capture stream that is closed after the test.
    """
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()
