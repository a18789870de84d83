#!/usr/bin/env python3
"""
DockWidgets - Main entry point for the headless polling host
"""

import argparse
import logging
import os
import signal
import sys

from dockwidgets.controller import DockWidgetsController


def main() -> None:
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description="DockWidgets - dock geometry, now playing and weather poller"
    )
    parser.add_argument("config", help="Path to YAML configuration file")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Sample every probe once, log the results and exit",
    )

    args = parser.parse_args()

    # Set up logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    logger = logging.getLogger(__name__)

    # Check config file exists
    config_path = os.path.expanduser(args.config)
    if not os.path.exists(config_path):
        logger.error(f"Configuration file not found: {config_path}")
        sys.exit(1)

    controller = DockWidgetsController(config_path)

    if args.once:
        if not controller.load_config():
            sys.exit(1)
        controller.run_once()
        controller.shutdown()
        return

    # Set up signal handlers for graceful shutdown
    def signal_handler(signum, frame):
        """Handle shutdown signals gracefully"""
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        controller.request_shutdown()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    try:
        controller.run()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
