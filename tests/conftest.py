import sys
import os

import pytest

# Add backend/ to path so tests can import backend modules directly
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

# Add scripts/ to path so tests can import script modules directly
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "scripts"))

# Shared fixture builders (tests/helpers)
sys.path.insert(0, os.path.dirname(__file__))


@pytest.fixture(scope="session")
def repo_data_path():
    """Bundled sample curriculum/progress directory."""
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "data"))


@pytest.fixture(scope="session")
def sample_data(repo_data_path):
    from data_loader import load_data
    return load_data(repo_data_path)
