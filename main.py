"""Entry point — pipe a server's log output into Azure Log Analytics.

    myserver 2>&1 | python main.py --log-type MYAPP
"""

import logging
import signal
import sys

from oms_sink.config import load_config
from oms_sink.sink import OmsLogSink


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logger = logging.getLogger(__name__)

    config = load_config()

    try:
        sink = OmsLogSink(config)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(2)

    # Raising is what breaks out of a read blocked on idle stdin.
    def handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        raise KeyboardInterrupt

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    logger.info(
        "Shipping stdin to log types %s every %.0fs",
        ", ".join(sink.log_types),
        config.flush_interval,
    )

    try:
        for line in sys.stdin:
            sink.write(line)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        sink.close(timeout=config.request_timeout * 2 + 5)
        logger.info("Sink metrics: %s", sink.metrics.snapshot())


if __name__ == "__main__":
    main()
