#!/usr/bin/env python3
"""
Health Metrics Admin Script

Runtime configuration and diagnostics for the extraction service:
1. Configuration summary
2. Primary provider / provider toggles / provider settings
3. Reset runtime overrides
4. Provider performance (hourly buckets, kept in process memory only)
5. Provider smoke test and one-off extraction
6. Metric validation

Usage:
    python scripts/health_metrics_admin.py summary
    python scripts/health_metrics_admin.py set-primary claude
    python scripts/health_metrics_admin.py toggle openai --disable
    python scripts/health_metrics_admin.py update deepseek --set timeout=60 --set priority=2
    python scripts/health_metrics_admin.py reset
    python scripts/health_metrics_admin.py performance --provider claude --hours 6
    python scripts/health_metrics_admin.py test deepseek
    python scripts/health_metrics_admin.py extract report.txt --patient-id 42 --report-id 7
    python scripts/health_metrics_admin.py validate metrics.json
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from health_metrics.core import ConfigManager, HealthMetricsExtractionService  # noqa: E402
from health_metrics.utils.exceptions import HealthMetricsError  # noqa: E402
from health_metrics.utils.logging import LogContext, log_performance, setup_logging  # noqa: E402
from health_metrics.validators import MetricValidator  # noqa: E402


logger = logging.getLogger("health_metrics_admin")


def _print(data: Any):
    print(json.dumps(data, indent=2, default=str))


def _parse_value(raw: str) -> Any:
    """Interpret KEY=VALUE values as JSON when possible (numbers, booleans)."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def _parse_updates(pairs: List[str]) -> Dict[str, Any]:
    updates: Dict[str, Any] = {}
    for pair in pairs:
        if '=' not in pair:
            raise ValueError(f"Expected KEY=VALUE, got '{pair}'")
        key, value = pair.split('=', 1)
        updates[key.strip()] = _parse_value(value.strip())
    return updates


def cmd_summary(args, manager: ConfigManager) -> int:
    _print(manager.configuration_summary())
    return 0


def cmd_set_primary(args, manager: ConfigManager) -> int:
    changed = manager.set_primary_provider(args.provider)
    if args.secondary is not None:
        changed = manager.set_secondary_provider(args.secondary or None) and changed
    _print({'success': changed, 'configuration': manager.configuration_summary()})
    return 0 if changed else 1


def cmd_toggle(args, manager: ConfigManager) -> int:
    enabled = not args.disable
    changed = manager.set_provider_enabled(args.provider, enabled)
    _print({'success': changed, 'provider': args.provider, 'enabled': enabled})
    return 0 if changed else 1


def cmd_update(args, manager: ConfigManager) -> int:
    updates = _parse_updates(args.set or [])
    changed = manager.update_provider_config(args.provider, updates)
    _print({
        'success': changed,
        'provider': args.provider,
        'config': manager.provider_config(args.provider).to_dict(),
    })
    return 0 if changed else 1


def cmd_reset(args, manager: ConfigManager) -> int:
    manager.reset_to_defaults()
    _print({'success': True, 'configuration': manager.configuration_summary()})
    return 0


def cmd_performance(args, manager: ConfigManager) -> int:
    service = HealthMetricsExtractionService(config_manager=manager)
    _print(service.get_provider_performance(provider=args.provider, hours=args.hours))
    return 0


@log_performance(logger, "Provider smoke test")
async def _test(args, manager: ConfigManager) -> int:
    service = HealthMetricsExtractionService(config_manager=manager)
    sample = Path(args.sample).read_text(encoding='utf-8') if args.sample else None
    try:
        result = await service.test_provider(args.provider, sample)
    finally:
        await service.close()
    _print(result)
    return 0 if result['success'] else 1


@log_performance(logger, "Report extraction")
async def _extract(args, manager: ConfigManager) -> int:
    service = HealthMetricsExtractionService(
        config_manager=manager,
        validator=MetricValidator() if args.validate else None,
    )
    text = Path(args.file).read_text(encoding='utf-8')
    report = {
        'id': args.report_id,
        'report_date': args.report_date,
        'type': args.report_type,
    }
    try:
        with LogContext(logger, report_id=args.report_id, patient_id=args.patient_id):
            result = await service.extract_metrics(
                text,
                patient_id=args.patient_id,
                report=report,
                deadline=args.deadline,
            )
    finally:
        await service.close()

    output = result.to_dict()
    if args.performance:
        output['performance'] = service.get_provider_performance(hours=1)
    _print(output)
    return 0 if result.success else 1


def cmd_validate(args, manager: ConfigManager) -> int:
    data = json.loads(Path(args.file).read_text(encoding='utf-8'))
    metrics = data if isinstance(data, list) else [data]

    batch = MetricValidator().validate_batch(metrics)
    _print({
        'stats': batch['stats'],
        'results': [result.to_dict() for result in batch['results']],
    })
    return 0 if batch['stats']['invalid'] == 0 else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Health metrics extraction admin")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("summary", help="Show configuration summary")

    primary = subparsers.add_parser("set-primary", help="Set the primary provider")
    primary.add_argument("provider")
    primary.add_argument("--secondary", help="Also set the secondary provider ('' clears it)")

    toggle = subparsers.add_parser("toggle", help="Enable or disable a provider")
    toggle.add_argument("provider")
    toggle.add_argument("--disable", action="store_true", help="Disable instead of enable")

    update = subparsers.add_parser("update", help="Update provider settings")
    update.add_argument("provider")
    update.add_argument("--set", action="append", metavar="KEY=VALUE",
                        help="enabled, model, base_url, timeout, max_retries or priority")

    subparsers.add_parser("reset", help="Remove all runtime overrides")

    performance = subparsers.add_parser(
        "performance",
        help="Provider performance recorded by this process (empty in a fresh run; see extract --performance)",
    )
    performance.add_argument("--provider")
    performance.add_argument("--hours", type=int, default=24)

    test = subparsers.add_parser("test", help="Smoke test a provider")
    test.add_argument("provider")
    test.add_argument("--sample", help="Path to a sample report text file")

    extract = subparsers.add_parser("extract", help="Extract metrics from a text file")
    extract.add_argument("file")
    extract.add_argument("--patient-id")
    extract.add_argument("--report-id")
    extract.add_argument("--report-date")
    extract.add_argument("--report-type", default="pdf")
    extract.add_argument("--deadline", type=float)
    extract.add_argument("--validate", action="store_true", help="Run the metric validator")
    extract.add_argument("--performance", action="store_true", help="Include this run's provider performance buckets")

    validate = subparsers.add_parser("validate", help="Validate metrics from a JSON file")
    validate.add_argument("file")

    return parser


COMMANDS = {
    'summary': cmd_summary,
    'set-primary': cmd_set_primary,
    'toggle': cmd_toggle,
    'update': cmd_update,
    'reset': cmd_reset,
    'performance': cmd_performance,
    'validate': cmd_validate,
}

ASYNC_COMMANDS = {
    'test': _test,
    'extract': _extract,
}


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level="DEBUG" if args.verbose else "WARNING")

    manager = ConfigManager()
    try:
        if args.command in ASYNC_COMMANDS:
            return asyncio.run(ASYNC_COMMANDS[args.command](args, manager))
        return COMMANDS[args.command](args, manager)
    except (HealthMetricsError, ValueError, OSError) as e:
        _print({'success': False, 'error': str(e)})
        return 1


if __name__ == "__main__":
    sys.exit(main())
