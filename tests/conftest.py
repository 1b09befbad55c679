import logging

import pytest


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """Remove the handlers setup_logging adds to the root logger after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
            root.removeHandler(handler)
    root.setLevel(level)
