"""
1-D Clustering
==============
Single-linkage clustering of scalar values with a fixed tolerance.

Items are sorted by key and a new cluster starts whenever the gap to the
previous item exceeds `eps`. Used to band noisy measurements such as
vertical positions, indents, line spacings and font sizes.
"""

from typing import Callable, List, Sequence, TypeVar

T = TypeVar('T')


def get_clusters(items: Sequence[T], key: Callable[[T], float], eps: float) -> List[List[T]]:
    """
    Group items into clusters of nearby key values.

    Args:
        items: Items to cluster (not modified)
        key: Numeric accessor
        eps: Max gap between neighbours inside one cluster

    Returns:
        Clusters in ascending key order, each sorted by key
    """
    if not items:
        return []

    ordered = sorted(items, key=key)
    clusters: List[List[T]] = []
    current = [ordered[0]]

    for item in ordered[1:]:
        if abs(key(item) - key(current[-1])) <= eps:
            current.append(item)
        else:
            clusters.append(current)
            current = [item]

    clusters.append(current)
    return clusters
