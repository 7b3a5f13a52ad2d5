import matplotlib

matplotlib.use("Agg")

import pytest


class ScriptedRng:
    """Random source replaying fixed values; fails loudly when it runs dry."""

    def __init__(self, ints=(), floats=()):
        self.ints = list(ints)
        self.floats = list(floats)

    def integers(self, low, high):
        assert self.ints, f"no scripted integer left for [{low}, {high})"
        v = self.ints.pop(0)
        assert low <= v < high, f"scripted {v} outside [{low}, {high})"
        return v

    def random(self):
        assert self.floats, "no scripted float left"
        return self.floats.pop(0)


@pytest.fixture
def scripted():
    return ScriptedRng
