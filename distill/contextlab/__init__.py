"""Clustering, representative selection and MMR re-ranking of chunks."""