"""Command line entry point of the Connectedfactory station."""

from __future__ import annotations

import argparse
import logging
from typing import Any

from aiohttp import web

from .config import (
    SERVER_PATH_DEFAULT,
    SERVER_PORT_DEFAULT,
    ServerConfig,
    StationConfig,
)
from .engine import StationEngine
from .errors import ConfigError
from .log import LOG_LEVELS, default_log_file, init_logging
from .server import create_app

logger = logging.getLogger("cfstation.cli")


def _log_level(value: str) -> str:
    level = value.lower()
    if level not in LOG_LEVELS:
        raise argparse.ArgumentTypeError(
            f"The loglevel must be one of: {', '.join(LOG_LEVELS)}")
    return level


def build_parser(defaults: StationConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cfstation", description="Connectedfactory station for the factory simulation")
    parser.add_argument("-lf", "--logfile", default=default_log_file(),
                        help="the filename of the logfile to use (default: %(default)s)")
    parser.add_argument("-ll", "--loglevel", type=_log_level, default="info",
                        help="the loglevel to use (allowed: fatal, error, warn, info, debug, verbose)")
    parser.add_argument("--host", default="0.0.0.0", help="the interface to listen on")
    parser.add_argument("-pn", "--portnum", type=int, default=SERVER_PORT_DEFAULT,
                        help="the server port of the station endpoint (default: %(default)s)")
    parser.add_argument("-op", "--path", default=SERVER_PATH_DEFAULT,
                        help="the endpoint URL path part of the station endpoint")
    parser.add_argument("-sh", "--stationhostname", default=None,
                        help="the fully qualified hostname of the station")
    parser.add_argument("-ga", "--generatealerts", action="store_true", default=defaults.generate_alerts,
                        help="the station should generate alerts")
    parser.add_argument("-pc", "--powerconsumption", type=float, default=defaults.power_consumption_kw,
                        help="the station's average power consumption in kW (default: %(default)s)")
    parser.add_argument("-ct", "--cycletime", type=float, default=defaults.ideal_cycle_time_default_ms / 1000.0,
                        help="the station's cycle time in seconds (default: %(default)s)")
    parser.add_argument("--seed", type=int, default=defaults.seed,
                        help="seed for the random model, for reproducible runs")
    return parser


def configs_from_args(args: argparse.Namespace):
    station_config = StationConfig(
        ideal_cycle_time_default_ms=int(round(args.cycletime * 1000)),
        power_consumption_kw=args.powerconsumption,
        generate_alerts=args.generatealerts,
        seed=args.seed,
    )
    server_kwargs = {"host": args.host, "port": args.portnum, "path": args.path}
    if args.stationhostname:
        server_kwargs["station_hostname"] = args.stationhostname
    return station_config, ServerConfig(**server_kwargs)


def main(argv: Any = None) -> int:
    try:
        defaults = StationConfig.from_env()
    except ConfigError as exc:
        print(f"Error: {exc}")
        return 2

    parser = build_parser(defaults)
    args = parser.parse_args(argv)
    init_logging(args.loglevel, args.logfile)

    try:
        station_config, server_config = configs_from_args(args)
    except ConfigError as exc:
        logger.critical(f"Error in command line options: {exc}")
        parser.print_usage()
        return 2

    engine = StationEngine(station_config)
    app = create_app(engine, server_config)

    logger.info(f"Starting server on endpoint "
                f"http://{server_config.station_hostname}:{server_config.port}{server_config.prefix} ...")
    logger.info("Server simulation settings are:")
    logger.info(f"Ideal cycle time of this station is {station_config.ideal_cycle_time_default_ms} msec")
    logger.info(f"Power consumption when operating at ideal cycle time is {station_config.power_consumption_kw} kW")
    logger.info(f"{'Periodically ' if station_config.generate_alerts else 'Not '}"
                f"generating high pressure for alert simulation.")

    web.run_app(app, host=server_config.host, port=server_config.port, print=None)
    logger.info("Station server exiting...")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
