#!/usr/bin/env python3
"""CLI interface for the security event processor.

This script runs a log batch stored as JSON through the processor, for
testing, debugging, and manual conversion of OpenReports report logs.
"""

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from logbatch.ingestion import dump_batch, load_batch
from logbatch.schemas import LogBatch
from openreports.schemas import REPORT_API_VERSION, REPORT_KIND

from .config import Config, create_default_config, load_config_file
from .processor import SecurityEventProcessor

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(config: Config, verbose: bool = False) -> None:
    """Configure root logging from the configuration."""
    level = logging.DEBUG if verbose else getattr(logging, config.logging.level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _build_config(config_path: Optional[Path], status_filter: Optional[str]) -> Config:
    config = load_config_file(config_path) if config_path else create_default_config()

    openreports = config.processors.openreports.model_copy(update={"enabled": True})
    if status_filter is not None:
        openreports.status_filter = [s.strip() for s in status_filter.split(",") if s.strip()]

    config = config.model_copy(
        update={"processors": config.processors.model_copy(update={"openreports": openreports})}
    )
    config.validate_config()
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Expand OpenReports report logs into security events",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Process a batch from a JSON file
  securityevent --input batch.json --output events.json

  # Only keep failed and errored results
  securityevent --input batch.json --status-filter fail,error

  # Test with synthetic data
  securityevent --test
        """
    )

    parser.add_argument(
        "--input", "-i",
        type=Path,
        help="Input JSON file containing a log batch (.json or .json.gz)"
    )

    parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output JSON file for the processed batch (default: stdout)"
    )

    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="YAML configuration file"
    )

    parser.add_argument(
        "--status-filter", "-s",
        help="Comma separated result statuses to keep (pass, fail, error, skip)"
    )

    parser.add_argument(
        "--test",
        action="store_true",
        help="Run with a synthetic report batch"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args(argv)

    try:
        config = _build_config(args.config, args.status_filter)
    except (FileNotFoundError, ValidationError, ValueError) as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        return 2

    setup_logging(config, args.verbose)

    if args.test:
        batch = LogBatch.model_validate(_generate_test_batch())
    elif args.input:
        try:
            batch = load_batch(args.input)
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    else:
        print("Error: Must provide --input file or use --test mode", file=sys.stderr)
        return 1

    logger.info(f"Processing batch with {batch.record_count()} records")
    processor = SecurityEventProcessor(config)
    counts = processor.rewrite_batch(batch)

    output_data = {
        "processed_at": datetime.now(timezone.utc).isoformat(),
        "incoming_records": counts.incoming,
        "outgoing_records": counts.outgoing,
        "metrics": processor.metrics.snapshot(),
        "batch": dump_batch(batch),
    }

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(output_data, f, indent=2, default=str)
        print(f"Results written to {args.output}")
    else:
        print(json.dumps(output_data, indent=2, default=str))

    return 0


def _generate_test_batch() -> Dict[str, Any]:
    """Generate a synthetic batch holding one report and one unrelated log."""
    results = [
        json.dumps({
            "source": "kyverno",
            "timestamp": {"seconds": 1761122152, "nanos": 0},
            "message": "validation error: Privileged mode is disallowed.",
            "policy": "disallow-privileged-containers",
            "rule": "privileged-containers",
            "result": "fail",
            "scored": True,
            "severity": "high",
            "category": "Pod Security Standards (Baseline)",
            "properties": {"controls": "privileged"},
        }),
        json.dumps({
            "source": "kyverno",
            "timestamp": {"seconds": 1761122152, "nanos": 0},
            "message": "validation rule 'host-namespaces' passed.",
            "policy": "disallow-host-namespaces",
            "rule": "host-namespaces",
            "result": "pass",
            "scored": True,
            "severity": "medium",
            "category": "Pod Security Standards (Baseline)",
        }),
    ]
    owner_refs = [
        json.dumps({
            "apiVersion": "apps/v1",
            "kind": "ReplicaSet",
            "name": "cert-manager-cainjector-89fd4b8f9",
            "uid": "0d9b7f3a-5a2e-4c7a-9a8e-0b2b0c1f6a11",
        }),
    ]
    return {
        "resource_logs": [{
            "resource": {"attributes": {"k8s.cluster.name": "test-cluster"}},
            "scope_logs": [{
                "scope": {"name": "k8sobjects"},
                "log_records": [
                    {
                        "time_unix_nano": 1761122152000000000,
                        "severity_text": "INFO",
                        "body": "policy report",
                        "attributes": {
                            "kind": REPORT_KIND,
                            "apiVersion": REPORT_API_VERSION,
                            "metadata.name": "4b1c2f0e-1f55-4d3a-8f2e-7c9d7b2a6e10",
                            "metadata.namespace": "cert-manager",
                            "metadata.ownerReferences": owner_refs,
                            "scope.kind": "Pod",
                            "scope.name": "cert-manager-cainjector-89fd4b8f9-t9xlf",
                            "scope.namespace": "cert-manager",
                            "scope.uid": "6a2f3d4b-8c1e-4f7a-b2d9-1e3c5a7b9d20",
                            "scope.apiVersion": "v1",
                            "k8s.cluster.name": "test-cluster",
                            "k8s.cluster.uid": "c1a2b3c4-d5e6-47f8-9a0b-1c2d3e4f5a6b",
                            "results": results,
                        },
                    },
                    {
                        "time_unix_nano": 1761122153000000000,
                        "severity_text": "INFO",
                        "body": "ordinary application log",
                        "attributes": {"service.name": "checkout"},
                    },
                ],
            }],
        }],
    }


if __name__ == "__main__":
    sys.exit(main())
