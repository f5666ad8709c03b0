import math

import pytest

from distill.contextlab.cluster import (
    ClusterConfig,
    Clusterer,
    cluster_by_threshold,
    default_cluster_config,
    sort_clusters_by_max_score,
    sort_clusters_by_size,
)
from distill.model import Chunk, Cluster


def _angle_vec(degrees):
    rad = math.radians(degrees)
    return [math.cos(rad), math.sin(rad)]


def _chain_chunks():
    return [
        Chunk(id="a", embedding=_angle_vec(0)),
        Chunk(id="b", embedding=_angle_vec(10)),
        Chunk(id="c", embedding=_angle_vec(20)),
    ]


def test_default_config_values():
    cfg = default_cluster_config()
    assert cfg.threshold == 0.15
    assert cfg.linkage == "average"
    assert cfg.min_clusters == 0
    assert cfg.max_clusters == 0


def test_non_positive_threshold_and_empty_linkage_use_defaults():
    clusterer = Clusterer(ClusterConfig(threshold=0, linkage=""))
    assert clusterer.config.threshold == 0.15
    assert clusterer.config.linkage == "average"


def test_empty_input():
    result = Clusterer().cluster([])
    assert result.clusters == []
    assert result.representatives == []
    assert result.input_count == 0
    assert result.cluster_count == 0


def test_single_chunk():
    chunk = Chunk(id="x", embedding=[1.0, 0.0], cluster_id=7)
    result = Clusterer().cluster([chunk])
    assert result.cluster_count == 1
    assert result.input_count == 1
    assert result.clusters[0].members == [chunk]
    assert result.clusters[0].centroid == [1.0, 0.0]
    assert result.representatives == [chunk]
    assert chunk.cluster_id == 0


def test_no_embeddings_each_chunk_own_cluster():
    chunks = [Chunk(id=str(i), text=f"text {i}") for i in range(4)]
    result = Clusterer().cluster(chunks)
    assert result.cluster_count == len(chunks)
    assert [c.id for c in result.clusters] == list(range(len(chunks)))
    assert [c.cluster_id for c in chunks] == list(range(len(chunks)))
    assert [r.id for r in result.representatives] == [c.id for c in chunks]


def test_identical_embeddings_merge_and_orthogonal_stays_apart():
    chunks = [
        Chunk(id="a", embedding=[1.0, 0.0]),
        Chunk(id="b", embedding=[1.0, 0.0]),
        Chunk(id="c", embedding=[0.0, 1.0]),
    ]
    result = Clusterer().cluster(chunks)
    assert result.cluster_count == 2
    assert [m.id for m in result.clusters[0].members] == ["a", "b"]
    assert [m.id for m in result.clusters[1].members] == ["c"]
    assert result.clusters[0].centroid == pytest.approx([1.0, 0.0])
    assert chunks[0].cluster_id == chunks[1].cluster_id == 0
    assert chunks[2].cluster_id == 1


def test_members_cover_all_chunks_once():
    chunks = [Chunk(id=str(d), embedding=_angle_vec(d)) for d in (0, 3, 45, 50, 90, 180)]
    result = cluster_by_threshold(chunks, 0.05)
    ids = sorted(m.id for c in result.clusters for m in c.members)
    assert ids == sorted(c.id for c in chunks)
    assert result.input_count == len(chunks)
    assert result.cluster_count == len(result.clusters)
    for cluster in result.clusters:
        for member in cluster.members:
            assert member.cluster_id == cluster.id


def test_single_linkage_chains():
    result = Clusterer(ClusterConfig(threshold=0.02, linkage="single")).cluster(_chain_chunks())
    assert result.cluster_count == 1


def test_complete_linkage_does_not_chain():
    result = Clusterer(ClusterConfig(threshold=0.02, linkage="complete")).cluster(_chain_chunks())
    assert result.cluster_count == 2


def test_unknown_linkage_behaves_like_average():
    average = Clusterer(ClusterConfig(threshold=0.02, linkage="average")).cluster(_chain_chunks())
    unknown = Clusterer(ClusterConfig(threshold=0.02, linkage="ward")).cluster(_chain_chunks())
    assert [[m.id for m in c.members] for c in unknown.clusters] == [
        [m.id for m in c.members] for c in average.clusters
    ]


def test_max_clusters_stops_merging():
    chunks = [Chunk(id=str(i), embedding=[1.0, 0.0]) for i in range(3)]
    result = Clusterer(ClusterConfig(max_clusters=2)).cluster(chunks)
    assert result.cluster_count == 2


def test_min_clusters_prevents_merging():
    chunks = [Chunk(id=str(i), embedding=[1.0, 0.0]) for i in range(3)]
    result = Clusterer(ClusterConfig(min_clusters=3)).cluster(chunks)
    assert result.cluster_count == 3


def test_missing_embedding_is_never_merged():
    chunks = [
        Chunk(id="a", embedding=[1.0, 0.0]),
        Chunk(id="b", embedding=[]),
        Chunk(id="c", embedding=[1.0, 0.0]),
    ]
    result = Clusterer().cluster(chunks)
    groups = [[m.id for m in c.members] for c in result.clusters]
    assert ["b"] in groups
    assert ["a", "c"] in groups


def test_sort_clusters_by_size():
    clusters = [
        Cluster(id=0, members=[Chunk()]),
        Cluster(id=1, members=[Chunk(), Chunk(), Chunk()]),
        Cluster(id=2, members=[Chunk(), Chunk()]),
    ]
    sort_clusters_by_size(clusters)
    assert [c.id for c in clusters] == [1, 2, 0]


def test_sort_clusters_by_max_score():
    clusters = [
        Cluster(id=0, members=[Chunk(score=0.2), Chunk(score=0.3)]),
        Cluster(id=1, members=[]),
        Cluster(id=2, members=[Chunk(score=0.9), Chunk(score=0.1)]),
    ]
    sort_clusters_by_max_score(clusters)
    assert [c.id for c in clusters] == [2, 0, 1]