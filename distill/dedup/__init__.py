"""K-Means based semantic deduplication of embedding vectors."""