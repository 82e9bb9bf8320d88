"""Command-line entry point: query WSUS and print a Zabbix value."""

import argparse
import logging
import sys
from typing import List, Optional

import yaml
from pydantic import ValidationError

from .collectors.wsus_collector import WsusCollector, create_transport
from .config.loader import ConfigLoader
from .config.models import WsusServerConfig, WsusZabbixConfig
from .config.settings import Settings
from .dispatcher import Action, ActionDispatcher, ObjectKind
from .utils.errors import ConfigurationError, WsusZabbixError
from .utils.logger import setup_logger
from .utils.output import check_codepage, resolve_width, write_output


class WsusZabbixApp:
    """
    One query against one WSUS server.

    Loads configuration, applies command-line overrides, runs the
    dispatcher and reports terminal errors the way Zabbix expects.
    """

    def __init__(self, args: argparse.Namespace):
        """
        Initialize application.

        Args:
            args: Parsed command-line arguments
        """
        self.args = args
        self.logger = setup_logger("wsus_zabbix", args.log_level or Settings().LOG_LEVEL or "WARNING")
        self.config: Optional[WsusZabbixConfig] = None

    @property
    def error_code(self) -> Optional[str]:
        """Error-code override, command line first."""
        if self.args.error_code is not None:
            return self.args.error_code
        if self.config is not None:
            return self.config.output.error_code
        return None

    @property
    def console_cp(self) -> Optional[str]:
        if self.args.console_cp:
            return self.args.console_cp
        if self.config is not None:
            return self.config.output.console_cp
        return None

    def _load_config(self) -> WsusZabbixConfig:
        """
        Load configuration and apply command-line overrides.

        Raises:
            ConfigurationError: If the configuration is missing or invalid
        """
        try:
            config = ConfigLoader.load(self.args.config)
        except FileNotFoundError as e:
            raise ConfigurationError(str(e)) from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration: {e}") from e
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        if not self.args.log_level and not Settings().LOG_LEVEL:
            self.logger.setLevel(config.logging.level)

        overrides = {}
        if self.args.server:
            overrides["server"] = self.args.server
        if self.args.port:
            overrides["port"] = self.args.port
        if self.args.use_ssl:
            overrides["use_ssl"] = True
        if overrides:
            try:
                config.wsus = WsusServerConfig.model_validate({**config.wsus.model_dump(), **overrides})
            except ValidationError as e:
                raise ConfigurationError(f"Invalid WSUS server options: {e}") from e

        return config

    def run(self) -> int:
        """
        Execute the query and print the result.

        Returns:
            int: Process exit code (0 success, 1 terminal error)
        """
        try:
            self.config = self._load_config()
            check_codepage(self.console_cp)

            transport = create_transport(self.config.transport, self.logger)
            collector = WsusCollector(self.config.wsus, transport, self.logger)
            dispatcher = ActionDispatcher(
                collector,
                logger=self.logger,
                error_code=self.error_code,
                pretty=self.args.pretty or self.config.output.pretty_json,
                width=resolve_width(not self.args.default_console_width, self.config.output.width),
            )

            result = dispatcher.run(
                self.args.action,
                self.args.object,
                key=self.args.key,
                id=self.args.id or None,
            )

        except WsusZabbixError as e:
            self.logger.error(
                f"{type(e).__name__}: {e}",
                extra={"error_type": type(e).__name__}
            )
            self._report_failure(e)
            return 1

        write_output(result, console_cp=self.console_cp)
        return 0

    def _report_failure(self, error: WsusZabbixError) -> None:
        """Print the error-code override, or a short warning."""
        message = self.error_code if self.error_code is not None else f"Warning: {error}"
        console_cp = None if isinstance(error, ConfigurationError) else self.console_cp
        write_output(message, console_cp=console_cp)


def _action(value: str) -> Action:
    try:
        return Action.parse(value)
    except ValueError:
        choices = ", ".join(a.value for a in Action)
        raise argparse.ArgumentTypeError(f"invalid action '{value}' (choose from {choices})")


def _object_kind(value: str) -> ObjectKind:
    try:
        return ObjectKind.parse(value)
    except ValueError:
        choices = ", ".join(k.value for k in ObjectKind)
        raise argparse.ArgumentTypeError(f"invalid object '{value}' (choose from {choices})")


def build_parser() -> argparse.ArgumentParser:
    """Command-line interface definition."""
    parser = argparse.ArgumentParser(
        prog='wsus-zabbix',
        description='Query a WSUS server and print values for Zabbix',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
        epilog="""
Examples:
  # Discover computer groups
  wsus-zabbix -Action discovery -Object ComputerGroup

  # Computers with update errors in one group
  wsus-zabbix -Action get -Object ComputerGroup -Id <group-guid> \\
      -Key ComputerTargetsWithUpdateErrorsCount

  # Days since the last synchronization
  wsus-zabbix -Action get -Object LastSynchronization -Key NotSyncInDays

  # Number of computer groups
  wsus-zabbix -Action count -Object ComputerGroup
        """
    )

    parser.add_argument(
        '-Action', '--action',
        dest='action',
        required=True,
        type=_action,
        help='discovery, get or count'
    )

    parser.add_argument(
        '-Object', '--object',
        dest='object',
        required=True,
        type=_object_kind,
        help='Info, Status, Database, Configuration, ComputerGroup, '
             'LastSynchronization or SynchronizationStatus'
    )

    parser.add_argument(
        '-Key', '--key',
        dest='key',
        default=None,
        help='Dotted metric key path, e.g. NotSyncInDays'
    )

    parser.add_argument(
        '-Id', '--id',
        dest='id',
        default=None,
        help='Computer group identifier'
    )

    parser.add_argument(
        '-ErrorCode', '--error-code',
        dest='error_code',
        default=None,
        help='Printed instead of missing values and warnings (e.g. ZBX_NOTSUPPORTED)'
    )

    parser.add_argument(
        '-ConsoleCP', '--console-cp',
        dest='console_cp',
        default=None,
        help='Output codepage, e.g. cp866 or utf-8'
    )

    parser.add_argument(
        '-DefaultConsoleWidth', '--default-console-width',
        dest='default_console_width',
        action='store_true',
        help='Keep the terminal width instead of widening listings'
    )

    parser.add_argument(
        '--pretty',
        action='store_true',
        help='Pretty-print discovery JSON'
    )

    parser.add_argument(
        '--config',
        default=None,
        help='Path to configuration file (default: WSUS_ZABBIX_CONFIG or config/config.yaml)'
    )

    parser.add_argument('--server', default=None, help='WSUS server name')
    parser.add_argument('--port', type=int, default=None, help='WSUS server port')
    parser.add_argument('--use-ssl', action='store_true', help='Connect to WSUS over SSL')

    parser.add_argument(
        '--log-level',
        default=None,
        type=str.upper,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: LOG_LEVEL env var or config)'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point.

    Args:
        argv: Arguments (default: sys.argv[1:])

    Returns:
        int: Exit code
    """
    args = build_parser().parse_args(argv)

    try:
        return WsusZabbixApp(args).run()
    except Exception as e:
        logging.getLogger("wsus_zabbix").error(f"Unexpected failure: {e}", exc_info=True)
        write_output(args.error_code if args.error_code is not None else f"Warning: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
