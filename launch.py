#!/usr/bin/env python3

"""wordlens launch script."""

import os
import sys
import argparse
import json
from pathlib import Path

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent / 'src'))

import constants
from common.base.logging_config import configure_logging, get_logger
from common.config.language_config import init_language_manager
from common.config.lookup_config import init_lookup_config

def get_log_filename():
    """
    Generate a log filename including PID and datetime.

    :return: Formatted log filename string
    """
    import datetime
    pid = os.getpid()
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"wordlens_{timestamp}_pid{pid}.log"

def init_system(log_level="INFO", app_log_level="DEBUG", service=None):
    """Initialize system components."""
    constants.init_production(service=service)

    # Create a unique log filename with PID and timestamp
    log_filename = get_log_filename()

    configure_logging(
        log_level=log_level,
        app_log_level=app_log_level,
        log_filename=log_filename
    )

    logger = get_logger(__name__)
    logger.info(f"Starting with PID {os.getpid()}, log file: {log_filename}")

    # Initialize config managers
    init_language_manager()
    init_lookup_config()

def lookup_once(word: str, language: str, show_grammar: bool) -> int:
    """Resolve a single word and print the outcome as JSON."""
    from common.config.language_config import get_language_manager
    from common.config.lookup_config import get_lookup_config
    from common.services.wiktionary import init_wiktionary_service
    from wordlens.pipeline import EntryFound, LexicalResolver, LookupFailed, Suppressed

    config = get_lookup_config()
    resolver = LexicalResolver(init_wiktionary_service(config.source), get_language_manager(),
                               config.pipeline, config.source)
    outcome = resolver.resolve(word, language, show_grammar)

    if isinstance(outcome, EntryFound):
        print(json.dumps(outcome.entry.to_dict(), ensure_ascii=False, indent=2))
        return 0
    if isinstance(outcome, Suppressed):
        print(f"'{outcome.word}' only has entries in the dictionary's own language")
        return 0
    if isinstance(outcome, LookupFailed):
        print(f"Error: {outcome.reason}", file=sys.stderr)
        return 2
    print("Definition not found", file=sys.stderr)
    return 1

def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Launch the wordlens lookup server, or look up a single word.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        prog='launch.py'
    )

    # Component selection
    parser.add_argument('--lookup', metavar='WORD',
                       help='Look up WORD, print the entry and exit')
    parser.add_argument('--lang', default=None,
                       help='Target language code for --lookup (default: configured default)')
    parser.add_argument('--no-grammar', action='store_true',
                       help='Leave inflection tables out of --lookup output')

    # Server configuration
    parser.add_argument('--host', default='0.0.0.0',
                       help='Host for server (default: 0.0.0.0)')
    parser.add_argument('--port', type=int, default=5000,
                       help='Port for server (default: 5000)')

    # Development options
    parser.add_argument('--dev', action='store_true',
                       help='Enable development mode with auto-reload')
    parser.add_argument('--debug', action='store_true',
                       help='Enable debug mode')

    # Logging configuration
    parser.add_argument('--log-level', default='INFO',
                       choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                       help='Set the logging level (default: INFO)')
    parser.add_argument('--app-log-level', default='DEBUG',
                       choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                       help='Set the application-specific logging level (default: DEBUG)')
    parser.add_argument('--quiet', '-q', action='store_true',
                       help='Suppress non-essential output')

    # Examples and notes
    parser.epilog = """
Examples:
  %(prog)s                          # Launch the lookup server on port 5000
  %(prog)s --port 8080              # Launch the lookup server on port 8080
  %(prog)s --dev                    # Launch with Flask's development server
  %(prog)s --lookup говорящего      # Look up one word in the default language
  %(prog)s --lookup casas --lang es

Note: Log files are created with timestamp and PID in the filename format:
      wordlens_YYYYMMDD_HHMMSS_pidNNNN.log
    """ % {'prog': parser.prog}

    return parser.parse_args()

def main():
    """Main entry point."""
    try:
        args = parse_args()

        # Initialize system with configured log levels
        log_level = 'DEBUG' if args.debug else args.log_level
        if args.quiet or args.lookup:
            log_level = 'WARNING'

        service = 'cli' if args.lookup else 'web'
        init_system(log_level=log_level, app_log_level=args.app_log_level, service=service)

        # Get logger after initialization to ensure it's properly configured
        logger = get_logger(__name__)
        logger.info("wordlens system initialized")

        if args.lookup:
            from common.config.language_config import get_language_manager
            language = args.lang or get_language_manager().default_language
            return lookup_once(args.lookup, language, not args.no_grammar)

        from web.server import run_server
        if not args.quiet:
            print(f"Starting wordlens server on http://{args.host}:{args.port}")
        logger.info(f"Starting wordlens server on {args.host}:{args.port}")
        run_server(host=args.host, port=args.port, debug=args.debug or args.dev)

        return 0

    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if '--debug' in sys.argv or '-v' in sys.argv:
            import traceback
            traceback.print_exc()
        return 1

if __name__ == '__main__':
    sys.exit(main())
