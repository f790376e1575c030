"""Tests for batch planning."""

import pytest

from artgen.models import GenerationRun, TraitSet
from artgen.services.scheduler import ScheduleError, plan_batches

RUN = GenerationRun(project_id="p1", collection_id="c1", composite_group_id="g1")


def ranges(jobs):
    return [(j.start_index, j.end_index) for j in jobs]


class TestPlanBatches:

    def test_even_split(self):
        jobs = plan_batches(RUN, 10, 5)

        assert ranges(jobs) == [(0, 5), (5, 10)]
        assert [j.is_first_batch_in_trait_set for j in jobs] == [True, False]
        assert all(j.run.trait_set_id is None for j in jobs)

    def test_last_batch_shorter(self):
        assert ranges(plan_batches(RUN, 7, 3)) == [(0, 3), (3, 6), (6, 7)]

    def test_batches_do_not_cross_trait_sets(self):
        trait_sets = [TraitSet("ts1", "One", 6), TraitSet("ts2", "Two", 3)]

        jobs = plan_batches(RUN, 10, 4, trait_sets)

        assert ranges(jobs) == [(0, 4), (4, 6), (6, 9), (9, 10)]
        assert [j.is_first_batch_in_trait_set for j in jobs] == [True, False, True, True]
        assert [j.run.trait_set_id for j in jobs] == ["ts1", "ts1", "ts2", None]
        assert all(j.run.composite_group_id == "g1" for j in jobs)

    def test_trait_sets_clipped_to_supply(self):
        trait_sets = [TraitSet("ts1", "One", 4), TraitSet("ts2", "Two", 10)]

        jobs = plan_batches(RUN, 6, 10, trait_sets)

        assert ranges(jobs) == [(0, 4), (4, 6)]
        assert [j.run.trait_set_id for j in jobs] == ["ts1", "ts2"]

    def test_empty_trait_set_skipped(self):
        trait_sets = [TraitSet("ts0", "Empty", 0), TraitSet("ts1", "One", 3)]

        jobs = plan_batches(RUN, 3, 2, trait_sets)

        assert [j.run.trait_set_id for j in jobs] == ["ts1", "ts1"]

    def test_zero_supply(self):
        assert plan_batches(RUN, 0, 5) == []

    @pytest.mark.parametrize("batch_size", [0, -1])
    def test_rejects_non_positive_batch_size(self, batch_size):
        with pytest.raises(ScheduleError):
            plan_batches(RUN, 10, batch_size)

    def test_rejects_negative_supply(self):
        with pytest.raises(ScheduleError):
            plan_batches(RUN, -1, 5)
