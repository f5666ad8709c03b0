"""In-memory LRU cache, cache-aware prefix partitioning, prefix stability checks and TTL tracking."""