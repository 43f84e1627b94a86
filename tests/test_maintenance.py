from datetime import datetime, timedelta

import pytest

from conftest import RecordingCompleter

from memcore.config import ARCHIVED_RELEVANCE
from memcore.maintenance import (backfill_embeddings, decay_memory_relevance,
                                 get_memory_efficiency_metrics, get_memory_stats,
                                 optimize_memory_system, prune_low_relevance_memories,
                                 summarize_long_memories)
from memcore.summarizer import Summarizer
from memcore.writer import save_memory

NOW = datetime(2024, 6, 1)


class TestPrune:
    def test_archives_only_stale_unused_low_relevance(self, store, add_memory):
        stale = add_memory("u1", "old note one", relevance_score=0.2)
        popular = add_memory("u1", "old note two", relevance_score=0.2, access_count=3,
                             last_accessed=NOW - timedelta(days=90))
        recent = add_memory("u1", "old note three", relevance_score=0.2, access_count=0,
                            last_accessed=NOW - timedelta(days=10))
        healthy = add_memory("u1", "old note four", relevance_score=0.5)

        assert prune_low_relevance_memories(store, "u1", now=NOW) == 1
        assert store.get("u1", stale.id).relevance_score == ARCHIVED_RELEVANCE
        assert store.get("u1", popular.id).relevance_score == 0.2
        assert store.get("u1", recent.id).relevance_score == 0.2
        assert store.get("u1", healthy.id).relevance_score == 0.5
        assert store.count("u1") == 4

    def test_exactly_thirty_days_is_not_stale(self, store, add_memory):
        add_memory("u1", "old note", relevance_score=0.2, last_accessed=NOW - timedelta(days=30))
        assert prune_low_relevance_memories(store, "u1", now=NOW) == 0

    def test_already_archived_not_counted_again(self, store, add_memory):
        add_memory("u1", "old note", relevance_score=0.2)
        assert prune_low_relevance_memories(store, "u1", now=NOW) == 1
        assert prune_low_relevance_memories(store, "u1", now=NOW) == 0

    def test_custom_threshold(self, store, add_memory):
        add_memory("u1", "old note", relevance_score=0.35)
        assert prune_low_relevance_memories(store, "u1", now=NOW) == 0
        assert prune_low_relevance_memories(store, "u1", relevance_threshold=0.4, now=NOW) == 1


class TestDecay:
    def test_idle_memories_decay(self, store, add_memory):
        idle = add_memory("u1", "idle note")
        active = add_memory("u1", "active note", last_accessed=NOW - timedelta(days=1))
        assert decay_memory_relevance(store, "u1", now=NOW) == 1
        assert store.get("u1", idle.id).relevance_score == pytest.approx(0.95)
        assert store.get("u1", active.id).relevance_score == 1.0

    def test_never_below_archive_floor(self, store, add_memory):
        near = add_memory("u1", "near floor", relevance_score=0.104)
        floor = add_memory("u1", "at floor", relevance_score=ARCHIVED_RELEVANCE)
        assert decay_memory_relevance(store, "u1", now=NOW) == 1
        assert store.get("u1", near.id).relevance_score == ARCHIVED_RELEVANCE
        assert store.get("u1", floor.id).relevance_score == ARCHIVED_RELEVANCE


def test_optimize_runs_all_steps(store, add_memory):
    add_memory("u1", "coffee beans daily")
    add_memory("u1", "coffee beans daily")
    stale = add_memory("u1", "tennis on sundays", relevance_score=0.2)

    result = optimize_memory_system(store, "u1")
    assert result.total_memories == 3
    assert result.pruned == 1
    assert result.consolidated == 1
    assert store.count("u1") == 2
    # archived rows stay at the floor through the decay pass
    assert store.get("u1", stale.id).relevance_score == ARCHIVED_RELEVANCE


class TestEfficiency:
    def test_empty_store(self, store):
        metrics = get_memory_efficiency_metrics(store, "nobody")
        assert metrics.total_memories == 0
        assert metrics.efficiency_score == 0

    def test_weighted_score(self, store, add_memory):
        add_memory("u1", "coffee beans daily")
        add_memory("u1", "coffee beans daily")
        add_memory("u1", "tennis on sundays", relevance_score=0.2)
        metrics = get_memory_efficiency_metrics(store, "u1")
        assert metrics.total_memories == 3
        assert metrics.avg_relevance_score == pytest.approx(2.2 / 3)
        assert metrics.low_relevance_count == 1
        assert metrics.duplicate_count == 1
        assert metrics.efficiency_score == 70

    def test_perfect_store(self, store, add_memory):
        add_memory("u1", "coffee beans daily")
        add_memory("u1", "tennis on sundays")
        assert get_memory_efficiency_metrics(store, "u1").efficiency_score == 100


def test_stats(store):
    save_memory(store, "My name is John", "u1")
    save_memory(store, "I prefer TypeScript", "u1")
    save_memory(store, "I like hiking", "u1")
    stats = get_memory_stats(store, "u1")
    assert stats.total_memories == 3
    assert stats.total_clusters == 3
    assert stats.type_distribution == {"personal": 1, "preference": 2}
    assert stats.avg_relevance_score == 1.0
    assert len(stats.most_relevant_memories) == 3
    assert get_memory_stats(store, "nobody").total_memories == 0


class TestBackfill:
    def test_embeds_missing_vectors(self, store, add_memory):
        memory = add_memory("u1", "coffee beans daily", embed=False)
        add_memory("u1", "tennis on sundays")
        assert backfill_embeddings(store, "u1") == 1
        assert store.get("u1", memory.id).embedding is not None

    def test_provider_still_down(self, store, failing_store, add_memory):
        add_memory("u1", "coffee beans daily", embed=False)
        assert backfill_embeddings(failing_store, "u1") == 0


def test_summarize_long_memories(store, add_memory):
    long_text = "The team keeps adding more detail to this note. " * 6
    long_memory = add_memory("u1", long_text, memory_type="project")
    short_memory = add_memory("u1", "short note")
    completer = RecordingCompleter("Condensed note.")

    assert summarize_long_memories(store, Summarizer(completer), "u1") == 1
    updated = store.get("u1", long_memory.id)
    assert updated.content == "Condensed note."
    assert updated.embedding == store.embed("Condensed note.")
    assert store.get("u1", short_memory.id).content == "short note"
