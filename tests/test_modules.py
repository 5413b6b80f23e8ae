import importlib

import pytest


@pytest.mark.parametrize("name", ["errors", "failure_tracker", "fetcher", "poller", "rules", "scheduler"])
def test_module_descriptions_are_docstrings(name):
    module = importlib.import_module(name)
    assert module.__doc__ and module.__doc__.strip()
