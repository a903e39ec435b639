"""Shared fixtures for the STARSIGHT test suite."""

from tests.fixtures.conftest import *  # noqa: F401,F403
