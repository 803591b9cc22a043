"""Tests for the rolling PriceHistory."""

import random
from datetime import timedelta

import pytest

from btc_sign.store.history import PriceHistory

from tests.fakes import BASE, history_with, sample_at

_DAY = timedelta(hours=24)


class TestAppendAndQuery:
    def test_empty_history_has_no_oldest(self) -> None:
        history = PriceHistory()
        assert history.oldest() is None
        assert history.newest() is None
        assert len(history) == 0

    def test_oldest_and_newest(self) -> None:
        history = history_with((1.0, BASE), (2.0, BASE + timedelta(seconds=5)))
        assert history.oldest().price == 1.0
        assert history.newest().price == 2.0

    def test_samples_returns_copy(self) -> None:
        history = history_with((1.0, BASE))
        history.samples.clear()
        assert len(history) == 1

    def test_non_positive_window_rejected(self) -> None:
        with pytest.raises(ValueError):
            PriceHistory(window=timedelta(0))


class TestPrune:
    def test_sample_exactly_window_old_is_removed(self) -> None:
        history = history_with((1.0, BASE), (2.0, BASE + timedelta(hours=1)))
        removed = history.prune(BASE + _DAY)
        assert removed == 1
        assert history.oldest().price == 2.0

    def test_sample_just_inside_window_is_kept(self) -> None:
        history = history_with((1.0, BASE))
        assert history.prune(BASE + _DAY - timedelta(microseconds=1)) == 0
        assert len(history) == 1

    def test_prune_can_empty_history(self) -> None:
        history = history_with((1.0, BASE), (2.0, BASE + timedelta(minutes=1)))
        history.prune(BASE + timedelta(days=3))
        assert history.oldest() is None

    def test_newly_appended_sample_survives_same_tick_prune(self) -> None:
        history = history_with((1.0, BASE))
        now = BASE + timedelta(days=2)
        history.append(sample_at(2.0, now))
        history.prune(now)
        assert [s.price for s in history.samples] == [2.0]

    def test_custom_window(self) -> None:
        history = history_with(
            (1.0, BASE),
            (2.0, BASE + timedelta(minutes=30)),
            window=timedelta(hours=1),
        )
        history.prune(BASE + timedelta(hours=1))
        assert [s.price for s in history.samples] == [2.0]


class TestWindowInvariant:
    @pytest.mark.parametrize("seed", range(20))
    def test_prune_keeps_exactly_the_in_window_samples(self, seed: int) -> None:
        """Interleaved append/prune with non-decreasing clock never keeps a
        stale sample and never drops a fresh one."""
        rng = random.Random(seed)
        history = PriceHistory()
        appended = []
        now = BASE

        for _ in range(300):
            now += timedelta(minutes=rng.randint(0, 180))
            sample = sample_at(rng.uniform(20_000, 80_000), now)
            history.append(sample)
            appended.append(sample)
            if rng.random() < 0.7:
                history.prune(now)
                expected = [s for s in appended if now - s.timestamp < _DAY]
                assert history.samples == expected
                assert all(now - s.timestamp < _DAY for s in history.samples)
