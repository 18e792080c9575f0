from __future__ import annotations
from dotenv import load_dotenv
load_dotenv()  # Load .env file before importing telemetry modules

import argparse
import logging
import sys
from typing import List, Optional

from telemetry import __version__
from telemetry.config import CONFIG_FILE, PUBLISHER, SYSFS_ROOT
from telemetry.logs import apply_levels, parse_level, setup_logging
from telemetry.models import ConfigError
from telemetry.publisher import build_publisher
from telemetry.sensors.acquisition import AcquisitionError, AcquisitionLoop
from telemetry.sensors.loader import build_descriptors, load_config

logger = logging.getLogger("telemetry.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="telemetryd",
        description="Sample one-wire/I2C sysfs sensors and publish formatted readings.",
    )
    parser.add_argument("-v", "--version", action="store_true", help="print the version and exit")
    parser.add_argument(
        "-d",
        "--log-level",
        metavar="LEVEL",
        help="log level for every category (trace, debug, info, warn, err, critical, off); "
        "overrides the configuration file",
    )
    parser.add_argument(
        "-f",
        "--config",
        metavar="FILE",
        default=CONFIG_FILE,
        help=f"configuration file (default: {CONFIG_FILE})",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.version:
        print(f"Version {__version__}")
        return 0

    setup_logging()
    try:
        cfg = load_config(args.config)
        if args.log_level:
            level = parse_level(args.log_level)
            apply_levels(level, level, level)
            logger.info(f"Log level set to {args.log_level}")
        else:
            apply_levels(
                parse_level(cfg.mainlog),
                parse_level(cfg.sensorslog),
                parse_level(cfg.networklog),
            )
        descriptors = build_descriptors(cfg, bus_root=SYSFS_ROOT)
        publisher = build_publisher(PUBLISHER)
    except ConfigError as e:
        logger.critical(str(e))
        return 1

    loop = AcquisitionLoop(descriptors, publisher.publish, cfg.poll_interval_ms)
    logger.info(
        f"Polling {len(descriptors)} sensor(s) for {cfg.module} every {cfg.delays}s, "
        f"publishing via {PUBLISHER}"
    )
    try:
        loop.run()
    except AcquisitionError as e:
        logger.critical(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        publisher.close()
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
