"""
Command-line entry point for the site crawler.
"""

import sys
import signal
import argparse
import json
import threading
from typing import Any, Dict, Optional

from site_crawler.utils.logging import get_logger, setup_logging
from site_crawler.utils.errors import MalformedURLError, ConfigurationError, ValidationError
from site_crawler.concurrent import (
    CrawlCoordinator,
    ConcurrentConfig,
    CancellationToken,
    CrawlResult,
    PageResult
)
from site_crawler.services.state_manager import StateStore
from config import ConfigManager, SystemConfig


logger = get_logger(__name__)

DEFAULT_WORKERS = 5

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


class CrawlerApp:
    """Wires configuration, signal handling and output around one crawl."""

    def __init__(self,
                 seed_url: str,
                 config: SystemConfig,
                 restart: bool = False,
                 print_text: bool = True):
        """
        Initialize the application.

        Args:
            seed_url: URL the crawl starts from
            config: Loaded system configuration
            restart: Ignore and delete any saved state
            print_text: Print the text of every scraped page
        """
        self.seed_url = seed_url
        self.config = config
        self.restart = restart
        self.print_text = print_text

        self.cancel_token = CancellationToken()
        self._output_lock = threading.Lock()
        self._signals_received = 0
        self._previous_handlers: Dict[int, Any] = {}

        engine_config = ConcurrentConfig(
            max_workers=config.crawler.max_workers,
            queue_timeout=config.crawler.queue_timeout,
            connect_timeout=config.crawler.connect_timeout,
            read_timeout=config.crawler.read_timeout
        )

        self.coordinator = CrawlCoordinator(
            seed_url,
            config=engine_config,
            state_store=StateStore(config.state.state_dir),
            on_page=self._report_page,
            cancel_token=self.cancel_token,
            restart=restart,
            user_agent=config.crawler.user_agent
        )

    def _signal_handler(self, signum: int, frame) -> None:
        """First signal stops dispatch, a second one abandons in-flight pages."""
        self._signals_received += 1
        if self._signals_received == 1:
            logger.warning(f"Received signal {signum}, finishing in-flight pages before saving state")
            self.cancel_token.cancel()
        else:
            logger.warning(f"Received signal {signum} again, saving state now")
            self.cancel_token.force()

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        for signum in (signal.SIGINT, signal.SIGTERM):
            self._previous_handlers[signum] = signal.signal(signum, self._signal_handler)

    def _restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def _report_page(self, page: PageResult) -> None:
        if not self.print_text:
            return
        with self._output_lock:
            print(f"\n<--- Text Present in The WebPage {page.url} is --->\n{page.text}", flush=True)

    def run(self) -> CrawlResult:
        """Run the crawl with signal handlers installed."""
        self._install_signal_handlers()
        try:
            return self.coordinator.run()
        finally:
            self._restore_signal_handlers()


def create_cli_parser() -> argparse.ArgumentParser:
    """Create command-line interface parser."""
    parser = argparse.ArgumentParser(
        prog='site-crawler',
        description='Site Crawler - resumable multi-threaded same-site crawler',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s https://example.com/              # Crawl with 5 workers, resume if state exists
  %(prog)s https://example.com/ 10           # Crawl with 10 workers
  %(prog)s https://example.com/ --restart    # Discard saved state and start from the seed
  %(prog)s https://example.com/ -o json -q   # Only print the JSON summary
        """
    )

    parser.add_argument(
        'seed_url',
        help='Absolute URL the crawl starts from'
    )

    parser.add_argument(
        'workers',
        type=int,
        nargs='?',
        help=f'Number of worker threads (default: {DEFAULT_WORKERS}, or from configuration)'
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        default='config.json',
        help='Path to configuration file (default: config.json)'
    )

    parser.add_argument(
        '--state-dir',
        type=str,
        help='Directory for crawl state files (default: current directory)'
    )

    parser.add_argument(
        '--restart',
        action='store_true',
        help='Delete saved state and start fresh from the seed URL'
    )

    parser.add_argument(
        '--queue-timeout',
        type=float,
        help='Seconds to wait for new work before checking for completion'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        choices=['json', 'text'],
        default='text',
        help='Output format for the final summary (default: text)'
    )

    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Do not print scraped page text'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Override log level from configuration'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write logs to this file (rotated daily)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output (equivalent to --log-level DEBUG)'
    )

    return parser


def format_output(data: Any, format_type: str) -> str:
    """Format output data according to specified format."""
    if format_type == 'json':
        return json.dumps(data, indent=2, default=str, ensure_ascii=False)

    if isinstance(data, dict):
        lines = []
        for key, value in data.items():
            if isinstance(value, dict):
                lines.append(f"{key}:")
                for sub_key, sub_value in value.items():
                    lines.append(f"  {sub_key}: {sub_value}")
            elif isinstance(value, list):
                lines.append(f"{key}:")
                lines.extend(f"  {item}" for item in value)
            else:
                lines.append(f"{key}: {value}")
        return '\n'.join(lines)
    elif isinstance(data, list):
        return '\n'.join(map(str, data))
    return str(data)


def apply_cli_overrides(config: SystemConfig, args: argparse.Namespace) -> SystemConfig:
    """Apply command-line values on top of the loaded configuration."""
    if args.workers is not None:
        config.crawler.max_workers = args.workers
    if args.queue_timeout is not None:
        config.crawler.queue_timeout = args.queue_timeout
    if args.state_dir:
        config.state.state_dir = args.state_dir
    if args.verbose:
        config.logging.level = 'DEBUG'
    elif args.log_level:
        config.logging.level = args.log_level
    if args.log_file:
        config.logging.file = args.log_file
    return config


def main(argv: Optional[list] = None) -> int:
    """Main entry point with command-line interface."""
    parser = create_cli_parser()
    args = parser.parse_args(argv)

    try:
        config = apply_cli_overrides(ConfigManager(args.config).load_config(), args)
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return EXIT_USAGE

    setup_logging(
        log_level=config.logging.level,
        log_file=config.logging.file,
        retention_days=config.logging.retention_days
    )

    try:
        app = CrawlerApp(
            args.seed_url,
            config,
            restart=args.restart,
            print_text=not args.quiet
        )
        result = app.run()
    except MalformedURLError as e:
        logger.error(f"Invalid seed URL: {e.message}")
        return EXIT_USAGE
    except ValidationError as e:
        logger.error(f"{e.message}: {'; '.join(e.details.get('errors', []))}")
        return EXIT_USAGE
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return EXIT_FAILURE

    summary = result.to_dict()
    if args.output == 'text':
        summary = {
            "Seed URL": result.seed_url,
            "State": result.state.value,
            "Interrupted": result.interrupted,
            "Pages fetched": result.pages_fetched,
            "Pages failed": result.pages_failed,
            "Pending URLs": result.pending_total,
            "State saved": result.checkpoint_saved,
            "Scraped pages": result.visited_pages
        }
    print(format_output(summary, args.output))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
