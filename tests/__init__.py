"""
STARSIGHT Test Suite

Test Organization:
    tests/
    ├── __init__.py          # This file
    ├── conftest.py          # Shared pytest fixtures
    ├── fixtures/            # Synthetic frame generators
    └── unit/                # Unit tests (no external dependencies)

Running Tests:
    # Run all tests
    pytest tests/

    # Run with coverage
    pytest tests/ --cov=services --cov=starsight --cov-report=html

Requirements:
    pip install -e ".[test]"
"""
