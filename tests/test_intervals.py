"""Tests for interval membership and active-set ordering."""

from datetime import date

import pytest

from timekeeper.timeline.intervals import TimedEntity, compute_active, partition_by_moment


def entity(id, beginning=None, ending=None):
    return TimedEntity(id=id, campaign_id="camp-1", beginning=beginning, ending=ending)


JANUARY = entity("jan", date(2024, 1, 1), date(2024, 1, 31))


class TestMembership:
    """Tests for which entities are active at a moment."""

    def test_inside_interval(self):
        """Test a moment inside the interval is active."""
        assert compute_active(date(2024, 1, 15), [JANUARY]) == [JANUARY]

    def test_after_interval(self):
        """Test a moment after the ending is inactive."""
        assert compute_active(date(2024, 2, 1), [JANUARY]) == []

    def test_before_interval(self):
        """Test a moment before the beginning is inactive."""
        assert compute_active(date(2023, 12, 31), [JANUARY]) == []

    @pytest.mark.parametrize("moment", [date(2024, 1, 1), date(2024, 1, 31)])
    def test_boundaries_inclusive(self, moment):
        """Test both boundary dates count as active."""
        assert compute_active(moment, [JANUARY]) == [JANUARY]

    def test_open_start(self):
        """Test a missing beginning is active arbitrarily far in the past."""
        open_start = entity("prophecy", ending=date(2024, 6, 1))

        assert compute_active(date(2024, 6, 1), [open_start]) == [open_start]
        assert compute_active(date(1, 1, 1), [open_start]) == [open_start]
        assert compute_active(date(2024, 6, 2), [open_start]) == []

    def test_open_end(self):
        """Test a missing ending stays active once begun."""
        ongoing = entity("war", beginning=date(2024, 3, 1))

        assert compute_active(date(2024, 2, 29), [ongoing]) == []
        assert compute_active(date(2024, 3, 1), [ongoing]) == [ongoing]
        assert compute_active(date(9999, 12, 31), [ongoing]) == [ongoing]

    def test_unbounded(self):
        """Test an entity with neither bound is always active."""
        always = entity("gods")
        assert compute_active(date(2024, 1, 1), [always]) == [always]

    def test_single_day_interval(self):
        """Test an interval that begins and ends on the same day."""
        festival = entity("festival", date(2024, 5, 1), date(2024, 5, 1))

        assert compute_active(date(2024, 5, 1), [festival]) == [festival]
        assert compute_active(date(2024, 5, 2), [festival]) == []

    def test_is_active_at(self):
        """Test the per-entity membership check."""
        assert JANUARY.is_active_at(date(2024, 1, 10))
        assert not JANUARY.is_active_at(date(2024, 2, 10))


class TestOrdering:
    """Tests for deterministic active-set ordering."""

    def test_bounded_before_unbounded(self):
        """Test entities with a beginning sort before open-started ones."""
        open_start = entity("a-open", ending=date(2024, 12, 31))
        bounded = entity("z-bounded", beginning=date(2024, 1, 1))

        result = compute_active(date(2024, 6, 1), [open_start, bounded])
        assert [e.id for e in result] == ["z-bounded", "a-open"]

    def test_earlier_beginning_first(self):
        """Test bounded entities sort by beginning."""
        late = entity("a", beginning=date(2024, 5, 1))
        early = entity("b", beginning=date(2024, 1, 1))
        middle = entity("c", beginning=date(2024, 3, 1))

        result = compute_active(date(2024, 6, 1), [late, early, middle])
        assert [e.id for e in result] == ["b", "c", "a"]

    def test_ties_broken_by_id(self):
        """Test equal beginnings and open starts sort by id."""
        entities = [
            entity("arc-2", beginning=date(2024, 1, 1)),
            entity("arc-10", beginning=date(2024, 1, 1)),
            entity("open-b"),
            entity("open-a", ending=date(2025, 1, 1)),
        ]

        result = compute_active(date(2024, 6, 1), entities)
        assert [e.id for e in result] == ["arc-10", "arc-2", "open-a", "open-b"]

    def test_idempotent(self):
        """Test repeated calls with the same inputs give the same ordered result."""
        entities = [
            entity("x", ending=date(2024, 7, 1)),
            entity("y", beginning=date(2024, 2, 1)),
            entity("w", beginning=date(2024, 2, 1), ending=date(2024, 2, 10)),
            entity("v", beginning=date(2023, 1, 1), ending=date(2024, 12, 1)),
        ]
        moment = date(2024, 2, 5)

        first = compute_active(moment, entities)
        second = compute_active(moment, entities)
        assert first == second
        assert [e.id for e in first] == ["v", "w", "y", "x"]

    def test_does_not_mutate_input(self):
        """Test the input sequence is left untouched."""
        entities = [entity("b", beginning=date(2024, 2, 1)), entity("a", beginning=date(2024, 1, 1))]
        compute_active(date(2024, 3, 1), entities)
        assert [e.id for e in entities] == ["b", "a"]

    def test_accepts_generators(self):
        """Test any iterable of entities is accepted."""
        result = compute_active(date(2024, 1, 5), (e for e in [JANUARY]))
        assert result == [JANUARY]


class TestPartition:
    """Tests for splitting events into past, current and upcoming."""

    def test_partition(self):
        """Test each entity lands in exactly one bucket."""
        old = entity("old", date(2023, 1, 1), date(2023, 2, 1))
        older = entity("older", date(2022, 1, 1), date(2022, 2, 1))
        now = entity("now", date(2024, 1, 1), date(2024, 12, 31))
        ongoing = entity("ongoing")
        soon = entity("soon", beginning=date(2024, 7, 1))
        later = entity("later", date(2025, 1, 1), date(2025, 2, 1))

        past, current, upcoming = partition_by_moment(
            date(2024, 6, 1), [later, ongoing, older, now, soon, old]
        )

        assert [e.id for e in past] == ["old", "older"]
        assert [e.id for e in current] == ["now", "ongoing"]
        assert [e.id for e in upcoming] == ["soon", "later"]

    def test_partition_empty(self):
        """Test an empty input yields three empty lists."""
        assert partition_by_moment(date(2024, 1, 1), []) == ([], [], [])


class TestSerialization:
    """Tests for TimedEntity JSON shape."""

    def test_to_dict(self):
        """Test dates are ISO strings and open bounds are None."""
        data = TimedEntity(
            id="arc-1", campaign_id="camp-1", beginning=date(2024, 1, 1), name="The Siege"
        ).to_dict()

        assert data == {
            "id": "arc-1",
            "campaignId": "camp-1",
            "name": "The Siege",
            "beginning": "2024-01-01",
            "ending": None,
        }
