# distill

Tools for stabilising and trimming the context you send to a large language
model. Everything is pure Python with no third-party dependencies.

The package is split into these areas:

- `distill.model` – the shared data types `Chunk`, `Cluster` and
  `ClusterResult`, and `cosine_distance`.
- `distill.cache` – an in-memory LRU cache with TTLs (`base`, `memory`),
  cache-aware prefix partitioning (`prefix`), prefix stability checks
  (`stability`) and prompt-cache TTL tracking (`ttl`).
- `distill.contextlab` – agglomerative clustering of chunks (`cluster`),
  representative selection (`selector`) and Maximal Marginal Relevance
  re-ranking (`mmr`).
- `distill.dedup` – K-Means based semantic deduplication of embedding
  vectors (`kmeans`).

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Caching

```python
from distill.cache.base import NotFoundError, default_config
from distill.cache.memory import MemoryCache

with MemoryCache(default_config()) as cache:
    cache.set("greeting", b"hello", 0)   # 0 uses the configured default TTL
    assert cache.get("greeting") == b"hello"
    try:
        cache.get("missing")
    except NotFoundError:
        pass
    print(cache.stats().hit_rate())      # percentage, here 50.0
```

Durations are given in seconds. Entries are evicted least-recently-used first
once `max_size` entries or `max_size_bytes` bytes are reached; a value larger
than `max_size_bytes` raises `ValueTooLargeError`. Expired entries are
dropped on access and swept by a background thread every `cleanup_interval`
seconds until `close()` is called (or the `with` block ends).

## Cache-aware deduplication

Chunks whose metadata carries a non-empty `cache_control` marker form a
frozen prefix that must not be reordered. `partition_for_cache_aware_dedup`
splits a list of chunks after the last marked chunk so that only the suffix
goes through deduplication:

```python
from distill.model import Chunk
from distill.cache.prefix import partition_for_cache_aware_dedup

chunks = [
    Chunk(id="sys", text="You are a helpful assistant.",
          metadata={"cache_control": {"type": "ephemeral"}}),
    Chunk(id="user", text="What is the capital of France?"),
]
partition = partition_for_cache_aware_dedup(chunks)
print(partition.prefix_hash, partition.marker_count, len(partition.suffix))
```

### Prefix stability

`StabilityValidator` records the prefix hash per call site and, after a
warm-up number of checks, reports a `StabilityIssue` when the prefix changes
too often. The issue names likely causes such as request ids, timestamps or
UUIDs found in the prefix text:

```python
from distill.cache.stability import StabilityValidator, default_stability_config

validator = StabilityValidator(default_stability_config())
for issue in validator.check("agent/planner.py:84", chunks):
    print(issue)
print(validator.validate_text("Request ID: abc-123"))  # ['request id']
```

### Prompt-cache TTL

`TTLTracker` tells you whether a prefix is still warm (default window: five
minutes) and how long you can wait before the next request:

```python
from distill.cache.ttl import TTLTracker

tracker = TTLTracker(0)                         # 0 means the five-minute default
warm = tracker.touch(partition.prefix_hash)     # False on first sight
print(tracker.time_until_expiry(partition.prefix_hash))
print(tracker.schedule_deadline(partition.prefix_hash, 30))
```

## Clustering, selection and MMR

Chunks need embeddings for clustering; without any, every chunk becomes its
own cluster.

```python
from distill.model import Chunk
from distill.contextlab.cluster import cluster_by_threshold
from distill.contextlab.selector import Selector, default_selector_config
from distill.contextlab.mmr import mmr_rerank

chunks = [
    Chunk(id="a", text="Reset your password from settings.", embedding=[1.0, 0.0], score=0.9),
    Chunk(id="b", text="Passwords are reset in settings.", embedding=[0.99, 0.05], score=0.8),
    Chunk(id="c", text="Billing runs monthly.", embedding=[0.0, 1.0], score=0.7),
]
result = cluster_by_threshold(chunks, 0.15)
representatives = Selector(default_selector_config()).select(result)
final = mmr_rerank(representatives, 0.5, 8)
```

Linkage may be `"single"`, `"complete"` or `"average"` (`ClusterConfig`);
selection strategies are `score`, `centroid`, `length` and `hybrid`
(`SelectionStrategy`). `select_top_k`, `diversity_score` and `coverage_score`
are also available.

## Vector deduplication

```python
from distill.dedup.kmeans import Engine, KMeansConfig, Vector

vectors = [
    Vector(id="1", values=[1.0, 0.0]),
    Vector(id="2", values=[1.0, 0.001]),
    Vector(id="3", values=[0.0, 1.0]),
]
engine = Engine(KMeansConfig(seed=42))
result = engine.deduplicate(vectors)
print(result.duplicate_count, [v.id for v in result.unique_vectors])
```

Vectors within the configured cosine-distance `threshold` of their cluster's
medoid are dropped as duplicates.

## What this package does not do

- It does not compress or prune text; the `distill.compress` package holds
  no compressors.
- It does not classify text as system prompts, tool definitions or code, and
  does not propose `cache_control` placements on its own; it only honours
  markers already present in chunk metadata.
- It does not talk to a vector database or an embedding provider: chunks and
  vectors, with their embeddings, must be supplied by the caller.
- It has no server, no command-line program, no configuration-file loading
  and no persistent or networked cache; the only cache is in memory.