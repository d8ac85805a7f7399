import sys

import pytest

# main() and the log setup functions replace sys.excepthook.
@pytest.fixture(autouse=True)
def restore_excepthook():
    excepthook = sys.excepthook
    yield
    sys.excepthook = excepthook
