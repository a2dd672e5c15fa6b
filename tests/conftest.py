"""
Shared pytest fixtures for job bracket tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - skip the full-tournament runs
"""
import pytest
import random
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.models import Candidate
from core.double_elimination import initialize_bracket, select_winner


def make_jobs(count=128):
    return [
        Candidate(id=i, title=f"Job {i}", description=f"Description of job {i}")
        for i in range(1, count + 1)
    ]


@pytest.fixture
def jobs():
    """The 128 jobs a bracket is built from."""
    return make_jobs()


@pytest.fixture
def bracket(jobs):
    """A freshly initialized bracket with a fixed shuffle."""
    return initialize_bracket(jobs, random.Random(42))


@pytest.fixture
def play():
    """
    Return a helper that records winners until `count` matches are played, the
    `until` predicate holds for the state, or the bracket is complete.
    `pick` chooses the winner from the current match (default: job1).
    """
    def _play(state, count=None, pick=None, until=None):
        pick = pick or (lambda match: match.job1)
        played = 0
        while state.current_match is not None:
            if count is not None and played >= count:
                break
            if until is not None and until(state):
                break
            state = select_winner(state, pick(state.current_match))
            played += 1
        return state
    return _play


@pytest.fixture
def random_pick():
    """Pick either job at random, reproducibly."""
    rng = random.Random(7)
    return lambda match: rng.choice([match.job1, match.job2])


@pytest.fixture
def catalog_file(tmp_path):
    """A YAML catalog of 128 jobs on disk."""
    lines = ["jobs:"]
    for job in make_jobs():
        lines.append(f"  - id: {job.id}")
        lines.append(f"    title: \"{job.title}\"")
        lines.append(f"    description: \"{job.description}\"")
    path = tmp_path / "jobs.yaml"
    path.write_text("\n".join(lines) + "\n", encoding='utf-8')
    return path
