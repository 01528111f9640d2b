"""
Tests for the map field.
"""

import pytest

from artresonance.core.errors import IllegalStateError
from artresonance.engine.mapfield import MapField


class TestMapField:
    """Tests for MapField."""

    def test_associate_new_and_reinforce(self):
        """Test new associations and reinforcement."""
        mf = MapField()
        assert mf.associate(0, "a") is True
        assert mf.associate(0, "a") is False
        assert mf[0] == "a"
        assert 0 in mf
        assert len(mf) == 1

    def test_conflict_never_overwrites(self):
        """Test that re-association to a different target raises."""
        mf = MapField()
        mf.associate(0, "a")
        with pytest.raises(IllegalStateError) as exc_info:
            mf.associate(0, "b")
        assert exc_info.value.state == "map_conflict"
        assert mf[0] == "a"
        assert mf.sources("b") == frozenset()

    def test_is_consistent(self):
        """Test the consistency check used as the search gate."""
        mf = MapField()
        assert mf.is_consistent(3, "x")
        mf.associate(3, "x")
        assert mf.is_consistent(3, "x")
        assert not mf.is_consistent(3, "y")

    def test_inverse(self):
        """Test the target -> sources multimap."""
        mf = MapField()
        mf.associate(0, "a")
        mf.associate(1, "b")
        mf.associate(2, "a")
        assert mf.sources("a") == frozenset({0, 2})
        assert mf.targets() == frozenset({"a", "b"})
        assert mf.to_dict() == {"forward": {0: "a", 1: "b", 2: "a"}, "inverse": {"a": [0, 2], "b": [1]}}

    def test_get_default(self):
        """Test lookups of unmapped sources."""
        mf = MapField()
        sentinel = object()
        assert mf.get(5, sentinel) is sentinel
        with pytest.raises(KeyError):
            mf[5]

    def test_remap_after_prune(self):
        """Test re-indexing drops pruned sources."""
        mf = MapField()
        mf.associate(0, "a")
        mf.associate(1, "b")
        mf.associate(2, "a")
        mf.remap({1: 0, 2: 1})
        assert dict(mf.items()) == {0: "b", 1: "a"}
        assert mf.sources("a") == frozenset({1})

    def test_clear(self):
        """Test clearing both directions."""
        mf = MapField()
        mf.associate(0, "a")
        mf.clear()
        assert len(mf) == 0
        assert mf.targets() == frozenset()
