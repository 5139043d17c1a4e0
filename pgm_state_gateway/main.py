import argparse
import logging
import os
import sys

import uvicorn

from pgm_state_gateway.adapters.machine_store import MachineContextStore
from pgm_state_gateway.adapters.sink_rest import OpcUaRestSink
from pgm_state_gateway.api import create_app
from pgm_state_gateway.core.scheduler import DEFAULT_POLL_INTERVAL, DEFAULT_WORKERS, NodeScheduler
from pgm_state_gateway.service import PgmStateService

logger = logging.getLogger("pgm_state")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Bending machine program state -> OPC-UA REST gateway")
    parser.add_argument("--data-folder", default=os.getcwd(), help="Folder holding opcua-settings.json")
    parser.add_argument("--host", default="127.0.0.1", help="Host API bind address")
    parser.add_argument("--port", type=int, default=8000, help="Host API port")
    parser.add_argument("--poll-interval", type=float, default=DEFAULT_POLL_INTERVAL, help="Mode poll interval (s)")
    parser.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="Node dispatch workers")
    parser.add_argument("--insecure", action="store_true", help="Skip TLS verification towards the gateway")
    parser.add_argument("--detect-mode-abort", action="store_true",
                        help="Pulse Aborted when the machine leaves SemiAuto/Auto")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='[OPCUA] %(asctime)s | %(levelname)s | %(name)s | %(message)s',
                        datefmt='%H:%M:%S')

    store = MachineContextStore()
    sink = OpcUaRestSink(verify=not args.insecure)
    service = PgmStateService(store, store, args.data_folder,
                              sink=sink,
                              scheduler=NodeScheduler(sink, workers=args.workers),
                              poll_interval=args.poll_interval,
                              detect_mode_abort=args.detect_mode_abort)
    app = create_app(service, store)

    try:
        uvicorn.run(app, host=args.host, port=args.port)
    except KeyboardInterrupt:
        logger.info("Gateway Shutdown.")
    except Exception:
        logger.critical("Fatal gateway error", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
