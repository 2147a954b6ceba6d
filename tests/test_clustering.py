"""
Tests for the 1-D clustering primitive
"""

import unittest
import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from layout_engine.clustering import get_clusters


class TestGetClusters(unittest.TestCase):

    def test_groups_by_gap(self):
        values = [5.0, 1.1, 9.0, 1.0, 5.05, 1.2]
        clusters = get_clusters(values, lambda v: v, 0.2)
        self.assertEqual(clusters, [[1.0, 1.1, 1.2], [5.0, 5.05], [9.0]])

    def test_chain_within_eps(self):
        # Single linkage: neighbours within eps chain into one cluster
        clusters = get_clusters([0, 1, 2, 3], lambda v: v, 1)
        self.assertEqual(clusters, [[0, 1, 2, 3]])

    def test_gap_properties(self):
        values = [0.0, 0.3, 0.45, 2.0, 2.1, 3.5, 7.0, 7.4]
        eps = 0.5
        clusters = get_clusters(values, lambda v: v, eps)
        for cluster in clusters:
            for a, b in zip(cluster, cluster[1:]):
                self.assertLessEqual(b - a, eps)
        for left, right in zip(clusters, clusters[1:]):
            self.assertGreater(right[0] - left[-1], eps)
        self.assertEqual(sum(len(c) for c in clusters), len(values))

    def test_key_accessor(self):
        items = [{'y': 10}, {'y': 30}, {'y': 11}]
        clusters = get_clusters(items, lambda d: d['y'], 2)
        self.assertEqual([[d['y'] for d in c] for c in clusters], [[10, 11], [30]])

    def test_empty(self):
        self.assertEqual(get_clusters([], lambda v: v, 1.0), [])


if __name__ == '__main__':
    unittest.main()
