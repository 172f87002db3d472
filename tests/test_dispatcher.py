"""
Unit tests for the clustering dispatcher.
"""

import unittest
from unittest.mock import patch

import numpy as np

from clustering.dispatcher import (
    ClusteringMethod,
    DBSCANParams,
    KMeansParams,
    apply_clustering,
    build_params,
    cluster_request,
    describe_clustering,
)
from clustering.types import BICSelection, ClusteringResult
from kx_common.config import EngineConfig
from kx_common.errors import DegenerateCaseError, InvalidInputError, UnknownMethodError


class TestApplyClustering(unittest.TestCase):
    """Test dispatch by method tag."""

    def setUp(self):
        """Set up test fixtures."""
        self.points = [[0, 0], [0, 1], [10, 10], [10, 11]]
        self.config = EngineConfig()

    def test_kmeans(self):
        """Test kmeans tag with explicit n_clusters."""
        result = apply_clustering(
            self.points, 'kmeans', {'n_clusters': 2, 'seed': 42}, self.config
        )
        self.assertEqual(result.n_clusters, 2)
        self.assertEqual(result.labels[0], result.labels[1])
        self.assertNotEqual(result.labels[0], result.labels[2])

    def test_dbscan(self):
        """Test dbscan tag forwards eps and min_samples."""
        result = apply_clustering(
            self.points, 'dbscan', {'eps': 1.5, 'min_samples': 2}, self.config
        )
        self.assertEqual(result.labels, [0, 0, 1, 1])

    def test_hierarchical(self):
        """Test hierarchical tag with explicit n_clusters."""
        result = apply_clustering(
            self.points, ClusteringMethod.HIERARCHICAL, {'n_clusters': 2}, self.config
        )
        self.assertEqual(result.labels, [0, 0, 1, 1])

    def test_tag_case_insensitive(self):
        """Test method tags are matched case-insensitively."""
        result = apply_clustering(self.points, 'KMeans', {'n_clusters': 1}, self.config)
        self.assertEqual(result.labels, [0, 0, 0, 0])

    def test_unknown_method(self):
        """Test unknown tags fail instead of defaulting."""
        with self.assertRaises(UnknownMethodError):
            apply_clustering(self.points, 'spectral', {}, self.config)
        with self.assertRaises(ValueError):
            apply_clustering(self.points, 'hdbscan', {}, self.config)

    def test_defaults_from_config(self):
        """Test missing parameters use configured defaults."""
        config = EngineConfig(default_n_clusters=2, dbscan_default_eps=1.5,
                              dbscan_default_min_samples=2)

        self.assertEqual(apply_clustering(self.points, 'hierarchical', None, config).n_clusters, 2)
        self.assertEqual(apply_clustering(self.points, 'dbscan', {}, config).labels, [0, 0, 1, 1])

    @patch('clustering.dispatcher.find_optimal_clusters')
    def test_auto_clusters_kmeans(self, mock_find):
        """Test auto_clusters runs the BIC sweep and uses its k."""
        mock_find.return_value = BICSelection(optimal_k=3)
        points = np.random.RandomState(0).rand(20, 2)

        result = apply_clustering(
            points, 'kmeans',
            {'auto_clusters': True, 'min_clusters': 2, 'max_clusters': 6, 'seed': 11},
            self.config,
        )

        self.assertEqual(result.n_clusters, 3)
        _, kwargs = mock_find.call_args
        self.assertEqual(kwargs['min_k'], 2)
        self.assertEqual(kwargs['max_k'], 6)
        self.assertEqual(kwargs['seed'], 11)
        self.assertEqual(kwargs['max_iterations'], self.config.bic_max_iterations)

    @patch('clustering.dispatcher.find_optimal_clusters')
    def test_auto_clusters_hierarchical_clamps_max(self, mock_find):
        """Test max_clusters is clamped below the point count."""
        mock_find.return_value = BICSelection(optimal_k=2)
        points = np.random.RandomState(1).rand(6, 2)

        with self.assertLogs('clustering.dispatcher', level='WARNING'):
            result = apply_clustering(
                points, 'hierarchical', {'auto_clusters': True, 'max_clusters': 10}, self.config
            )

        self.assertEqual(result.n_clusters, 2)
        self.assertEqual(mock_find.call_args.kwargs['max_k'], 5)

    def test_auto_clusters_end_to_end(self):
        """Test automatic selection on real data stays within range."""
        rng = np.random.RandomState(42)
        points = np.vstack([rng.randn(15, 2) * 0.3, rng.randn(15, 2) * 0.3 + 10])

        result = apply_clustering(
            points, 'kmeans',
            {'auto_clusters': True, 'min_clusters': 2, 'max_clusters': 5},
            self.config,
        )

        self.assertGreaterEqual(result.n_clusters, 2)
        self.assertLessEqual(result.n_clusters, 5)
        self.assertEqual(len(result.labels), 30)

    def test_empty_points(self):
        """Test empty input surfaces the algorithm's error."""
        with self.assertRaises(InvalidInputError) as context:
            apply_clustering([], 'kmeans', {'n_clusters': 2}, self.config)
        self.assertIn("empty dataset", str(context.exception))


class TestParams(unittest.TestCase):
    """Test parameter parsing and request handling."""

    def test_build_params_kmeans(self):
        """Test kmeans parameters keep explicit zero seed."""
        params = build_params(ClusteringMethod.KMEANS, {'seed': 0, 'n_clusters': 3}, EngineConfig())

        self.assertIsInstance(params, KMeansParams)
        self.assertEqual(params.seed, 0)
        self.assertEqual(params.n_clusters, 3)
        self.assertFalse(params.auto_clusters)

    def test_build_params_dbscan(self):
        """Test dbscan defaults."""
        params = build_params(ClusteringMethod.DBSCAN, {}, EngineConfig())

        self.assertIsInstance(params, DBSCANParams)
        self.assertEqual(params.eps, 0.5)
        self.assertEqual(params.min_samples, 5)

    def test_numeric_strings_coerced(self):
        """Test numeric strings from request files become typed values."""
        params = build_params(
            ClusteringMethod.KMEANS,
            {'n_clusters': '3', 'seed': ' 7 ', 'min_clusters': '2', 'max_clusters': 4.0},
            EngineConfig(),
        )
        self.assertEqual((params.n_clusters, params.seed), (3, 7))
        self.assertEqual((params.min_clusters, params.max_clusters), (2, 4))

        dbscan_params = build_params(ClusteringMethod.DBSCAN, {'eps': '1.5'}, EngineConfig())
        self.assertEqual(dbscan_params.eps, 1.5)

    def test_auto_clusters_flag_parsing(self):
        """Test auto_clusters strings are read as booleans, not truthiness."""
        for raw, expected in (('false', False), ('No', False), (0, False),
                              ('true', True), ('1', True), (True, True)):
            params = build_params(
                ClusteringMethod.HIERARCHICAL, {'auto_clusters': raw}, EngineConfig()
            )
            self.assertIs(params.auto_clusters, expected)

    def test_auto_clusters_false_string_keeps_n_clusters(self):
        """Test auto_clusters 'false' clusters with the given n_clusters."""
        result = apply_clustering(
            [[0, 0], [0, 1], [10, 10], [10, 11]], 'kmeans',
            {'auto_clusters': 'false', 'n_clusters': 2}, EngineConfig(),
        )
        self.assertEqual(result.n_clusters, 2)

    def test_bad_parameter_types(self):
        """Test malformed parameter values raise InvalidInputError."""
        points = [[0, 0], [0, 1], [10, 10], [10, 11]]
        bad_requests = [
            ('dbscan', {'eps': 'wide'}),
            ('dbscan', {'eps': float('inf')}),
            ('dbscan', {'min_samples': [2]}),
            ('kmeans', {'n_clusters': float('nan')}),
            ('kmeans', {'n_clusters': 2.5}),
            ('kmeans', {'n_clusters': True}),
            ('kmeans', {'seed': 'abc'}),
            ('kmeans', {'max_iterations': {'n': 3}}),
            ('kmeans', {'auto_clusters': 'maybe'}),
            ('hierarchical', {'auto_clusters': 2}),
            ('hierarchical', {'max_clusters': '10 clusters'}),
        ]
        for method, params in bad_requests:
            with self.subTest(method=method, params=params):
                with self.assertRaises(InvalidInputError):
                    apply_clustering(points, method, params, EngineConfig())

    def test_auto_clusters_on_duplicate_points(self):
        """Test zero-variance data aborts automatic selection."""
        with self.assertRaises(DegenerateCaseError):
            apply_clustering([[1.0, 1.0]] * 5, 'kmeans', {'auto_clusters': True},
                             EngineConfig())

    def test_cluster_request(self):
        """Test the {points, method, params} entry contract."""
        result = cluster_request(
            {'points': [[0, 0], [0, 1], [10, 10], [10, 11]],
             'method': 'dbscan',
             'params': {'eps': 1.5, 'min_samples': 2}},
            EngineConfig(),
        )
        self.assertEqual(result.to_dict(), {'labels': [0, 0, 1, 1], 'n_clusters': 2})

    def test_cluster_request_missing_fields(self):
        """Test requests without points or method are rejected."""
        with self.assertRaises(InvalidInputError):
            cluster_request({'method': 'kmeans'})
        with self.assertRaises(InvalidInputError):
            cluster_request({'points': [[0, 0]]})

    def test_describe_clustering(self):
        """Test the clustering summary block."""
        result = ClusteringResult(labels=[0, 0, 1], n_clusters=2)
        summary = describe_clustering('kmeans', {'n_clusters': 2, 'seed': 1}, result)

        self.assertEqual(summary, {
            'method': 'kmeans',
            'n_clusters': 2,
            'parameters': {'n_clusters': 2},
        })


if __name__ == '__main__':
    unittest.main()
