"""
Perpetual World Cup - Main Entry Point
Runs the FastAPI backend under uvicorn

Usage:
    python main.py                     # port from $PORT, default 8000
    python main.py --port 9000 --reload
"""

import argparse
import logging
import os
import signal
import subprocess
import sys

from cup_engine import config

_log = logging.getLogger("cupsim")


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Serve the Perpetual World Cup API")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", default=os.environ.get("PORT", "8000"))
    parser.add_argument("--reload", action="store_true", help="restart on source changes")
    return parser.parse_args(argv)


def main(argv=None):
    args = _parse_args(argv)
    os.chdir(os.path.dirname(os.path.abspath(__file__)))

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cmd = [
        sys.executable, "-m", "uvicorn", "api.main:app",
        f"--host={args.host}", f"--port={args.port}",
        f"--log-level={config.LOG_LEVEL.lower()}",
    ]
    if args.reload:
        cmd.append("--reload")
    server = subprocess.Popen(cmd)
    _log.info(f"API listening on {args.host}:{args.port} (epoch {config.EPOCH})")

    def stop(signum, frame):
        _log.info(f"Signal {signum} received, stopping API")
        server.terminate()
        sys.exit(0)

    for sig in (signal.SIGTERM, signal.SIGINT):
        signal.signal(sig, stop)

    try:
        sys.exit(server.wait())
    finally:
        if server.poll() is None:
            server.terminate()


if __name__ == "__main__":
    main()
