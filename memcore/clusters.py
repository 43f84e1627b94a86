# memcore/clusters.py
import logging
from typing import List, Optional
from memcore.config import CLUSTER_THRESHOLD
from memcore.data_models import ClusterRecord, MemoryRecord
from memcore.errors import StoreError
from memcore.models import MemoryCluster, utcnow
from memcore.store import MemoryStore
from memcore.vector_index import centroid, cosine_rank

logger = logging.getLogger(__name__)


def find_or_create_cluster(store: MemoryStore, user_id: str, embedding: List[float],
                           semantic_tags: List[str], memory_type: str,
                           threshold: float = CLUSTER_THRESHOLD) -> Optional[str]:
    """Id of the closest owned cluster, or of a new one; None when the store fails."""
    try:
        clusters = store.clusters_for_user(user_id)
        hits = cosine_rank(embedding, [(c.id, c.centroid_embedding) for c in clusters], threshold, k=1)
        if hits:
            return hits[0][0]
        cluster = MemoryCluster(
            user_id=user_id,
            name=f"{memory_type.capitalize()} Cluster",
            description=f"Cluster for {memory_type} memories with tags: {', '.join(semantic_tags)}",
            centroid_embedding=embedding,
        )
        store.add_cluster(cluster)
        logger.info("Created cluster %s for user %s", cluster.name, user_id)
        return cluster.id
    except StoreError as exc:
        logger.warning("Cluster assignment skipped: %s", exc)
        return None


def refresh_cluster(store: MemoryStore, cluster: MemoryCluster) -> Optional[MemoryCluster]:
    """Recompute the denormalized rollups from the cluster's members; an empty cluster is removed."""
    members = store.cluster_members(cluster.user_id, cluster.id)
    count = len(members)
    if not count:
        cluster_id = cluster.id
        store.delete_cluster(cluster)
        logger.info("Removed empty cluster %s", cluster_id)
        return None
    avg = sum(m.relevance_score or 0.0 for m in members) / count
    with store.transaction():
        cluster.memory_count = count
        cluster.average_relevance_score = avg
        center = centroid([m.embedding for m in members])
        if center is not None:
            cluster.centroid_embedding = center
        cluster.updated_at = utcnow()
    return cluster


def refresh_clusters(store: MemoryStore, user_id: str, cluster_ids=None) -> int:
    refreshed = 0
    for cluster in store.clusters_for_user(user_id):
        if cluster_ids is not None and cluster.id not in cluster_ids:
            continue
        refresh_cluster(store, cluster)
        refreshed += 1
    return refreshed


def get_memory_clusters(store: MemoryStore, user_id: str) -> List[ClusterRecord]:
    return [ClusterRecord.model_validate(c) for c in store.clusters_for_user(user_id)]


def get_memories_by_cluster(store: MemoryStore, user_id: str, cluster_id: str) -> List[MemoryRecord]:
    cluster = store.get_cluster(user_id, cluster_id)
    return [MemoryRecord.from_row(m) for m in store.cluster_members(user_id, cluster.id)]
