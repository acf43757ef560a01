"""Root conftest — shared test configuration."""

import os

# Ensure tests don't accidentally talk to a real kernel with a real token
os.environ.setdefault("SIYUAN_URL", "http://kernel.test")
os.environ.setdefault("SIYUAN_TOKEN", "test-fake-token")
