"""
Command-line clustering of a point set.

Usage:
    python3 -m clustering --input request.json [--output result.json] [--quality]

The request file (JSON or YAML) holds:
    {"points": [[...], ...], "method": "kmeans", "params": {"n_clusters": 3}}

Environment Variables:
    CLUSTERING_DEFAULT_SEED, KMEANS_MAX_ITERATIONS, BIC_MAX_ITERATIONS, ...
    (see kx_common.config)
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from kx_common.config import load_config
from kx_common.errors import AnalyticsError, InvalidInputError

from .dispatcher import cluster_request, describe_clustering
from .quality import compute_quality_metrics

logger = logging.getLogger(__name__)


def load_request(path: Path) -> Dict[str, Any]:
    """Read a clustering request from a JSON or YAML file."""
    text = path.read_text(encoding='utf-8')
    try:
        if path.suffix.lower() in ('.yaml', '.yml'):
            request = yaml.safe_load(text)
        else:
            request = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise InvalidInputError(f"Could not parse request file {path}", cause=e) from e

    if not isinstance(request, dict):
        raise InvalidInputError(f"Request file {path} must contain an object")
    return request


def run(request: Dict[str, Any], include_quality: bool = False) -> Dict[str, Any]:
    """Cluster a request and build the output document."""
    config = load_config()
    result = cluster_request(request, config)

    output = result.to_dict()
    output['clustering'] = describe_clustering(request['method'], request.get('params'), result)
    if include_quality:
        output['quality'] = compute_quality_metrics(request['points'], result)
    return output


def main(argv: Optional[List[str]] = None):
    """Main entry point for command-line clustering."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    parser = argparse.ArgumentParser(
        description='Cluster embedding vectors or reduced coordinates'
    )
    parser.add_argument(
        '--input',
        required=True,
        type=Path,
        help='JSON or YAML file with points, method and params'
    )
    parser.add_argument(
        '--output',
        type=Path,
        help='Write the result to this file instead of stdout'
    )
    parser.add_argument(
        '--quality',
        action='store_true',
        help='Include silhouette score and cluster size statistics'
    )

    args = parser.parse_args(argv)

    try:
        request = load_request(args.input)
        output = run(request, include_quality=args.quality)
    except (AnalyticsError, OSError) as e:
        logger.error(f"Clustering failed: {e}", exc_info=True)
        sys.exit(1)

    document = json.dumps(output, indent=2)
    if args.output:
        args.output.write_text(document + '\n', encoding='utf-8')
        logger.info(f"Result written to {args.output}")
    else:
        print(document)


if __name__ == '__main__':
    main()
