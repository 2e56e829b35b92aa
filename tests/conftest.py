"""
Shared pytest fixtures for progression engine tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from progression.models import Pair, Score


def make_pairs(count, seeded=True):
    """Pairs p1..pN, seeded 1..N unless seeded is False."""
    return [
        Pair(id=f"p{i}", player1=f"Player {i}A", player2=f"Player {i}B",
             seed=i if seeded else None)
        for i in range(1, count + 1)
    ]


def play(match, *sets):
    """Complete a match with the given (side A, side B) set scores."""
    match.record_score(Score(list(sets)))
    return match


@pytest.fixture
def sample_pairs():
    """Eight seeded pairs."""
    return make_pairs(8)


@pytest.fixture
def client(monkeypatch):
    """Test client for the JSON API, running on default settings."""
    monkeypatch.delenv('PROGRESSION_CONFIG', raising=False)
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
