#!/usr/bin/env python3
"""
kube-versions - report platform workload versions across Kubernetes contexts.

By default every kubeconfig context is checked for the configured namespaces
(ArgoCD, Cribl edge, Datadog, Komodor agent, NFS/EFS CSI driver).
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from typing import List, Optional, Sequence

from kubeversions.config import ReportConfig, build_report_config
from kubeversions.core.errors import ConfigError, ContextUnreachableError, MissingDependencyError, NoContextsError
from kubeversions.core.models import ContextReport, VersionTable
from kubeversions.dump import context_reports_to_json_dict, version_table_to_json_dict
from kubeversions.logging_setup import configure_logging, load_log_config, transcript
from kubeversions.pipeline import build_version_table, collect_context_report, resolve_contexts
from kubeversions.providers.k8s_provider import K8sProvider, get_k8s_provider
from kubeversions.report import SECTION_RULE, render_context_report, render_table, render_timing

logger = logging.getLogger("kubeversions.main")


def _emit(line: str = "") -> None:
    print(line)
    transcript(line)


def run_list_mode(provider: K8sProvider, config: ReportConfig) -> List[ContextReport]:
    """
    Per-pod version listing for each (context, namespace).

    Unreachable contexts are skipped (when iterating over all contexts); an unreachable
    explicitly requested context raises ContextUnreachableError.
    """
    contexts = resolve_contexts(provider, config)
    quiet = config.dump_json

    if not quiet and config.all_contexts:
        _emit(f"Found {len(contexts)} Kubernetes context(s) to check")
        _emit(f"Checking namespaces: {' '.join(config.namespaces)}")
        _emit()
        _emit(SECTION_RULE)
        _emit()

    reports: List[ContextReport] = []
    for ctx in contexts:
        logger.info("Processing context: %s", ctx)
        # resolve_contexts already probed an explicitly requested context.
        report = collect_context_report(provider, ctx, config.targets, verify_context=config.all_contexts)
        reports.append(report)
        if not quiet:
            _emit(render_context_report(report))

    if not quiet and config.all_contexts:
        _emit("Completed checking all contexts")
    return reports


def run_table_mode(provider: K8sProvider, config: ReportConfig) -> VersionTable:
    """One row per context, one representative version per configured namespace."""
    contexts = resolve_contexts(provider, config)
    logger.info("Found %d context(s) for table display", len(contexts))
    table = build_version_table(provider, contexts, config.targets, verify_context=config.all_contexts)

    if not config.dump_json:
        for line in render_table(table):
            _emit(line)
    return table


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kube-versions",
        description=(
            "Get version information from pods in specified namespaces.\n"
            "By default, loops through all Kubernetes contexts and checks the configured namespaces."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  LOG_DIR             Base directory for log files (default: ~/logs)
                      Logs are stored in a subfolder named after the tool (e.g., ~/logs/kube-versions/)
  LOG_FILE            Full path to log file (default: LOG_DIR/kube-versions/kube-versions_YYYYMMDD_HHMMSS.log)
  LOG_IN_CURRENT_DIR  Set to "true" to create logs in the current directory (default: false)
  DEBUG               Set to "true" to enable debug logging (default: false)
  KUBE_VERSIONS_CONFIG  YAML file with namespace descriptors (same as --config)

Examples:
  kube-versions                    # Check all contexts for every configured namespace
  kube-versions -t                 # Tabular view: one row per context
  kube-versions -c my-context      # Check only my-context
  kube-versions -n komodor         # Check all contexts in the komodor namespace only
  DEBUG=true kube-versions         # Enable debug logging
        """,
    )
    parser.add_argument("-n", "--namespace", metavar="NAMESPACE", help="Namespace to search (default: configured list)")
    parser.add_argument(
        "-c", "--context", metavar="CONTEXT", help="Check only this specific context (disables all-context loop)"
    )
    parser.add_argument(
        "-t", "--table", action="store_true", help="Display results in tabular format (one column per namespace)"
    )
    parser.add_argument("--kubeconfig", metavar="PATH", help="Path to the kubeconfig file (default: $KUBECONFIG)")
    parser.add_argument("--config", metavar="FILE", help="YAML file with namespace descriptors")
    parser.add_argument(
        "--dump-json", action="store_true", help="Print the collected results as JSON on stdout instead of text"
    )
    return parser


def main(argv: Optional[Sequence[str]] = None, *, provider: Optional[K8sProvider] = None) -> int:
    """CLI entry point. Returns the process exit code."""
    args = _build_parser().parse_args(argv)

    log_file = configure_logging(load_log_config())
    start = datetime.now()
    logger.info("Starting kube-versions (log file: %s)", log_file)

    try:
        config = build_report_config(
            namespace=args.namespace,
            context=args.context,
            table_mode=args.table,
            config_file=args.config,
            kubeconfig=args.kubeconfig,
            dump_json=args.dump_json,
        )
        logger.info("Checking namespaces: %s", " ".join(config.namespaces))
        provider = provider or get_k8s_provider(kubeconfig=config.kubeconfig)

        if config.table_mode:
            table = run_table_mode(provider, config)
            payload = version_table_to_json_dict(table) if config.dump_json else None
        else:
            reports = run_list_mode(provider, config)
            payload = context_reports_to_json_dict(reports) if config.dump_json else None
    except (MissingDependencyError, NoContextsError, ContextUnreachableError, ConfigError) as e:
        logger.error("%s", e)
        return 1

    end = datetime.now()
    logger.info("Execution completed in %d second(s)", int((end - start).total_seconds()))

    if payload is not None:
        # Emit ONLY JSON on stdout so `> file.json` stays valid.
        print(json.dumps(payload, indent=2, sort_keys=False))
        return 0

    for line in render_timing(start, end):
        _emit(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
