"""
Single entry point for clustering a point set by method tag.

The method tag is resolved to a ClusteringMethod and its raw parameter
dict to a typed parameter object; unknown tags fail with
UnknownMethodError rather than falling back to a default algorithm.
"""

import logging
import math
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from kx_common.config import EngineConfig, load_config
from kx_common.errors import InvalidInputError, UnknownMethodError
from kx_common.vectors import as_point_matrix

from .bic import find_optimal_clusters
from .dbscan import dbscan
from .hierarchical import hierarchical
from .kmeans import kmeans
from .types import ClusteringResult

logger = logging.getLogger(__name__)


class ClusteringMethod(str, Enum):
    KMEANS = 'kmeans'
    DBSCAN = 'dbscan'
    HIERARCHICAL = 'hierarchical'

    @classmethod
    def parse(cls, tag: Union[str, 'ClusteringMethod']) -> 'ClusteringMethod':
        if isinstance(tag, cls):
            return tag
        try:
            return cls(str(tag).lower())
        except ValueError:
            raise UnknownMethodError(
                f"Unknown clustering method: {tag}. "
                f"Choose 'kmeans', 'dbscan' or 'hierarchical'",
                details={'method': tag},
            ) from None


@dataclass
class KMeansParams:
    n_clusters: int
    seed: int
    max_iterations: int
    auto_clusters: bool = False
    min_clusters: int = 2
    max_clusters: int = 10


@dataclass
class HierarchicalParams:
    n_clusters: int
    seed: int
    auto_clusters: bool = False
    min_clusters: int = 2
    max_clusters: int = 10


@dataclass
class DBSCANParams:
    eps: float
    min_samples: int


ClusteringParams = Union[KMeansParams, HierarchicalParams, DBSCANParams]


_TRUE_STRINGS = {'true', 'yes', 'on', '1'}
_FALSE_STRINGS = {'false', 'no', 'off', '0'}


def _int_param(params: Mapping[str, Any], key: str, default: int) -> int:
    """Read an integer parameter; integral floats and numeric strings are accepted."""
    value = params.get(key)
    if value is None:
        return default
    if isinstance(value, numbers.Integral) and not isinstance(value, bool):
        return int(value)
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        if math.isfinite(value) and float(value).is_integer():
            return int(value)
    elif isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise InvalidInputError(
        f"Parameter '{key}' must be an integer, got {value!r}",
        details={key: value},
    )


def _float_param(params: Mapping[str, Any], key: str, default: float) -> float:
    """Read a finite number parameter; numeric strings are accepted."""
    value = params.get(key)
    if value is None:
        return default
    number = None
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            number = None
    if number is None or not math.isfinite(number):
        raise InvalidInputError(
            f"Parameter '{key}' must be a finite number, got {value!r}",
            details={key: value},
        )
    return number


def _bool_param(params: Mapping[str, Any], key: str, default: bool = False) -> bool:
    """Read a flag; accepts booleans, 0/1 and true/false style strings."""
    value = params.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, numbers.Integral) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise InvalidInputError(
        f"Parameter '{key}' must be a boolean, got {value!r}",
        details={key: value},
    )


def build_params(
    method: ClusteringMethod,
    params: Optional[Mapping[str, Any]] = None,
    config: Optional[EngineConfig] = None
) -> ClusteringParams:
    """
    Turn the raw request parameters into the typed parameters of one method.

    Missing values fall back to the engine configuration defaults. Values
    read from JSON or YAML requests are coerced to their declared types.

    Raises:
        InvalidInputError: If a parameter has the wrong type
    """
    params = params or {}
    config = config or load_config()

    if method is ClusteringMethod.KMEANS:
        return KMeansParams(
            n_clusters=_int_param(params, 'n_clusters', config.default_n_clusters),
            seed=_int_param(params, 'seed', config.default_seed),
            max_iterations=_int_param(params, 'max_iterations', config.kmeans_max_iterations),
            auto_clusters=_bool_param(params, 'auto_clusters'),
            min_clusters=_int_param(params, 'min_clusters', config.default_min_clusters),
            max_clusters=_int_param(params, 'max_clusters', config.default_max_clusters),
        )
    if method is ClusteringMethod.HIERARCHICAL:
        return HierarchicalParams(
            n_clusters=_int_param(params, 'n_clusters', config.default_n_clusters),
            seed=_int_param(params, 'seed', config.default_seed),
            auto_clusters=_bool_param(params, 'auto_clusters'),
            min_clusters=_int_param(params, 'min_clusters', config.default_min_clusters),
            max_clusters=_int_param(params, 'max_clusters', config.default_max_clusters),
        )
    if method is ClusteringMethod.DBSCAN:
        return DBSCANParams(
            eps=_float_param(params, 'eps', config.dbscan_default_eps),
            min_samples=_int_param(params, 'min_samples', config.dbscan_default_min_samples),
        )
    raise UnknownMethodError(f"Unhandled clustering method: {method}")


def _resolve_cluster_count(
    points: Sequence[Sequence[float]],
    params: Union[KMeansParams, HierarchicalParams],
    config: EngineConfig
) -> int:
    """
    Fixed n_clusters, or the BIC optimum when auto_clusters is set.

    If any candidate k leaves every point on its centroid (for example
    exact duplicate points), the whole selection fails with
    DegenerateCaseError.
    """
    if not params.auto_clusters:
        return params.n_clusters

    n = len(points)
    max_k = params.max_clusters
    if n <= max_k:
        logger.warning(
            f"max_clusters={max_k} needs more than {max_k} points, "
            f"clamping to {n - 1} for {n} points"
        )
        max_k = n - 1

    selection = find_optimal_clusters(
        points,
        min_k=params.min_clusters,
        max_k=max_k,
        seed=params.seed,
        max_iterations=config.bic_max_iterations,
    )
    logger.info(f"Auto-selected n_clusters={selection.optimal_k}")
    return selection.optimal_k


def apply_clustering(
    points: Sequence[Sequence[float]],
    method: Union[str, ClusteringMethod],
    params: Optional[Mapping[str, Any]] = None,
    config: Optional[EngineConfig] = None,
) -> ClusteringResult:
    """
    Cluster points with the requested method.

    Args:
        points: Point set (stored embeddings or reduced 2D/3D coordinates)
        method: 'kmeans', 'dbscan' or 'hierarchical'
        params: Optional n_clusters, eps, min_samples, auto_clusters,
            min_clusters, max_clusters, seed
        config: Engine defaults (loaded from the environment if omitted)

    Returns:
        ClusteringResult

    Raises:
        UnknownMethodError: If the method tag is not recognized
        InvalidInputError: If points or parameters are invalid
        DegenerateCaseError: If auto_clusters is set and any k in the sweep has
            zero within-cluster variance (e.g. exact duplicate points); pass
            an explicit n_clusters for such data
    """
    method = ClusteringMethod.parse(method)
    config = config or load_config()
    typed = build_params(method, params, config)
    matrix = as_point_matrix(points)

    logger.info(f"Clustering {matrix.shape[0]} points with {method.value}")

    if method is ClusteringMethod.KMEANS:
        k = _resolve_cluster_count(matrix, typed, config)
        result = kmeans(matrix, k, max_iterations=typed.max_iterations, seed=typed.seed)
    elif method is ClusteringMethod.DBSCAN:
        result = dbscan(matrix, eps=typed.eps, min_samples=typed.min_samples)
    elif method is ClusteringMethod.HIERARCHICAL:
        k = _resolve_cluster_count(matrix, typed, config)
        result = hierarchical(matrix, k)
    else:
        raise UnknownMethodError(f"Unhandled clustering method: {method}")

    logger.info(
        f"Clustering complete: {result.n_clusters} clusters found, "
        f"{result.noise_count} noise points"
    )
    return result


def describe_clustering(
    method: Union[str, ClusteringMethod],
    params: Optional[Mapping[str, Any]],
    result: ClusteringResult
) -> Dict[str, Any]:
    """Summary block reported alongside clustered points."""
    method = ClusteringMethod.parse(method)
    params = params or {}
    parameters = {
        key: params[key]
        for key in ('n_clusters', 'eps', 'min_samples')
        if params.get(key) is not None
    }
    return {
        'method': method.value,
        'n_clusters': result.n_clusters,
        'parameters': parameters,
    }


def cluster_request(
    request: Mapping[str, Any],
    config: Optional[EngineConfig] = None
) -> ClusteringResult:
    """
    Handle a `{points, method, params}` clustering request.

    Raises:
        InvalidInputError: If points or method are missing
    """
    if 'points' not in request:
        raise InvalidInputError("Clustering request is missing 'points'")
    if 'method' not in request:
        raise InvalidInputError("Clustering request is missing 'method'")

    params = request.get('params') or {}
    if not isinstance(params, Mapping):
        raise InvalidInputError("Clustering 'params' must be an object")

    return apply_clustering(request['points'], request['method'], params, config)
