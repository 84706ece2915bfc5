# Test settings live in tests/__init__.py; importing it first keeps
# pytest's collection order from mattering.
import tests  # noqa: F401
