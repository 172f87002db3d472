"""
Unit tests for clustering quality metrics and label mapping helpers.
"""

import unittest

from clustering.quality import attach_cluster_labels, compute_quality_metrics, create_cluster_mapping
from clustering.types import ClusteringResult
from kx_common.errors import InvalidInputError


class TestQualityMetrics(unittest.TestCase):
    """Test compute_quality_metrics()."""

    def setUp(self):
        """Set up test fixtures."""
        self.points = [[0, 0], [0, 1], [10, 10], [10, 11], [50, 50]]

    def test_well_separated_clusters(self):
        """Test silhouette and size statistics for two tight clusters."""
        result = ClusteringResult(labels=[0, 0, 1, 1, -1], n_clusters=2)
        metrics = compute_quality_metrics(self.points, result)

        self.assertEqual(metrics['n_clusters'], 2)
        self.assertEqual(metrics['n_noise_points'], 1)
        self.assertGreater(metrics['silhouette_score'], 0.8)
        self.assertLessEqual(metrics['silhouette_score'], 1.0)
        self.assertEqual(metrics['min_cluster_size'], 2)
        self.assertEqual(metrics['max_cluster_size'], 2)
        self.assertEqual(metrics['mean_cluster_size'], 2.0)

    def test_single_cluster_has_no_silhouette(self):
        """Test silhouette is None with fewer than two clusters."""
        result = ClusteringResult(labels=[0] * 5, n_clusters=1)
        metrics = compute_quality_metrics(self.points, result)

        self.assertIsNone(metrics['silhouette_score'])
        self.assertEqual(metrics['max_cluster_size'], 5)

    def test_length_mismatch(self):
        """Test labels must match points."""
        with self.assertRaises(InvalidInputError):
            compute_quality_metrics(self.points, ClusteringResult(labels=[0], n_clusters=1))


class TestClusterMapping(unittest.TestCase):
    """Test cluster mapping helper functions."""

    def test_create_cluster_mapping(self):
        """Test creating cluster mapping from item IDs and labels."""
        result = ClusteringResult(labels=[0, -1, 1], n_clusters=2)
        mapping = create_cluster_mapping(['doc-1', 'doc-2', 'doc-3'], result)

        self.assertEqual(mapping, {
            'doc-1': 'cluster-0',
            'doc-2': 'noise',
            'doc-3': 'cluster-1',
        })

    def test_cluster_mapping_length_mismatch(self):
        """Test error handling for mismatched lengths."""
        with self.assertRaises(InvalidInputError):
            create_cluster_mapping(['doc-1'], ClusteringResult(labels=[0, 1], n_clusters=2))

    def test_attach_cluster_labels(self):
        """Test per-point items gain a cluster field without being mutated."""
        items = [{'uri': 'a', 'coordinates': [0, 0]}, {'uri': 'b', 'coordinates': [1, 1]}]
        labelled = attach_cluster_labels(items, ClusteringResult(labels=[1, 0], n_clusters=2))

        self.assertEqual([item['cluster'] for item in labelled], [1, 0])
        self.assertNotIn('cluster', items[0])

    def test_result_helpers(self):
        """Test ClusteringResult convenience accessors."""
        result = ClusteringResult(labels=[1, 0, 1, -1], n_clusters=2)

        self.assertEqual(result.cluster_sizes(), {0: 1, 1: 2})
        self.assertEqual(result.noise_count, 1)


if __name__ == '__main__':
    unittest.main()
