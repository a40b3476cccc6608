# Remote agent entry point
#
# Starts the agent loop against the configured controller and runs until
# interrupted.

import argparse
import logging

from agent.config import load_settings
from agent.core.agent import Agent

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Remote command agent - executes controller commands on this host"
    )
    parser.add_argument(
        "--address", help="Controller endpoint, e.g. tcp://10.0.0.5:5556 (overrides config)"
    )
    parser.add_argument("--config", help="Path to a JSON config file")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    # Configure logging for agent operations
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = load_settings(args.config, controller_address=args.address)
    logger.info(f"Starting agent against {settings.controller_address}")

    agent = Agent(settings)
    try:
        agent.run_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted - shutting down")
    finally:
        agent.stop()


if __name__ == "__main__":
    main()
