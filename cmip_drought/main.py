#!/usr/bin/env python3
"""
CMIP6 drought comparison report - command line entry point.

Usage examples:
    # Write a sample configuration to edit
    python -m cmip_drought.main init-config --output report.yaml

    # Run the full report
    python -m cmip_drought.main run --config report.yaml

    # Validate the inputs only
    python -m cmip_drought.main validate --config report.yaml
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .shared.config import ConfigurationError, ConfigurationLoader, ReportConfiguration
from .validation.core.validator import ValidationStopError
from .workflow import ComparisonWorkflow

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None):
    """Setup logging for CLI operations."""
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )


def load_configuration(args) -> ReportConfiguration:
    """Configuration file (or defaults) with command line overrides applied."""
    config = ConfigurationLoader().load_report_config(args.config)
    overrides = {}
    if getattr(args, 'model_dir', None):
        overrides['model_dir'] = Path(args.model_dir)
    if getattr(args, 'observed', None):
        overrides['observed_path'] = Path(args.observed)
    if getattr(args, 'output_dir', None):
        overrides['output_dir'] = Path(args.output_dir)
    if args.log_level:
        overrides['log_level'] = args.log_level
    if overrides:
        config = config.model_copy(update=overrides)
    return config


def run_command(args) -> bool:
    """Run the full comparison report."""
    config = load_configuration(args)
    setup_logging(config.log_level, config.log_file)
    logger.info(f"🌍 Running '{config.report_name}'")

    result = ComparisonWorkflow(config).run(render=not args.no_render)
    for name, path in result.outputs.items():
        logger.info(f"  {name}: {path}")
    if result.spei_failures:
        logger.warning(f"{len(result.spei_failures)} series without index: "
                       f"{', '.join(sorted(result.spei_failures))}")
    return True


def validate_command(args) -> bool:
    """Validate the inputs without rendering the report."""
    config = load_configuration(args)
    setup_logging(config.log_level, config.log_file)
    logger.info("🔍 Validating inputs")

    suite = ComparisonWorkflow(config).run_validation_only()
    summary = suite.generate_summary()
    for name, info in summary['validation_summary'].items():
        issues = info['issues']
        logger.info(f"  {name}: {info['quality_score']} "
                    f"({issues['critical']} critical, {issues['warning']} warning, {issues['info']} info)")
    for message in suite.critical_issues():
        logger.error(f"  {message}")
    logger.info(f"Overall quality: {summary['overall_quality']}")
    return suite.passed


def init_config_command(args) -> bool:
    """Write a sample configuration file."""
    setup_logging(args.log_level or "INFO")
    path = ConfigurationLoader().write_sample_config(args.output)
    logger.info(f"📝 Sample configuration written to {path}")
    return True


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cmip-drought",
        description="Compare CMIP6 models against observations: PET, water balance, SPEI and drought",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s init-config --output report.yaml
  %(prog)s run --config report.yaml
  %(prog)s validate --config report.yaml --log-level DEBUG
        """
    )
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Override the configured logging level')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    for name, help_text in (('run', 'Run the full comparison report'),
                            ('validate', 'Validate inputs only')):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('--config', '-c', help='Configuration file (YAML or JSON)')
        sub.add_argument('--model-dir', help='Directory holding the model tables')
        sub.add_argument('--observed', help='Observed table')
        sub.add_argument('--output-dir', '-o', help='Output directory')
        if name == 'run':
            sub.add_argument('--no-render', action='store_true',
                             help='Skip figures and the HTML report')

    config_parser = subparsers.add_parser('init-config', help='Write a sample configuration file')
    config_parser.add_argument('--output', '-o', default='cmip_drought.yaml',
                               help='Output configuration file name')
    return parser


def main(argv=None) -> int:
    """Main entry point with argument parsing."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        'run': run_command,
        'validate': validate_command,
        'init-config': init_config_command,
    }

    try:
        success = commands[args.command](args)
    except ConfigurationError as e:
        logger.error(f"❌ Configuration error: {e}")
        return 1
    except ValidationStopError as e:
        logger.error(f"🛑 {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("🛑 Processing interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"💥 Fatal error: {e}")
        return 1

    if success:
        logger.info(f"✅ Command '{args.command}' completed successfully")
        return 0
    logger.error(f"❌ Command '{args.command}' failed")
    return 1


if __name__ == "__main__":
    sys.exit(main())
