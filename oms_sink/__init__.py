"""Log sink that batches log lines and ships them to Azure Log Analytics."""

from oms_sink.config import SinkConfig, load_config
from oms_sink.sink import OmsLogHandler, OmsLogSink

__all__ = ["OmsLogHandler", "OmsLogSink", "SinkConfig", "load_config"]
