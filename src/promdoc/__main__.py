"""Run the promdoc server: python -m promdoc."""

import sys

import uvicorn

from promdoc.app import create_app
from promdoc.config import Settings
from promdoc.core.errors import ConfigurationError
from promdoc.core.logs import configure_logging, get_logger


def main() -> int:
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        print(f"promdoc: {e}", file=sys.stderr)
        return 2
    configure_logging(settings.log_level)
    get_logger().info(
        "Listening on %s:%d", settings.listen_host, settings.listen_port
    )
    uvicorn.run(
        create_app(settings),
        host=settings.listen_host,
        port=settings.listen_port,
        log_level=settings.log_level.lower(),
        access_log=False,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
