"""Internal constants shared across the library."""

BACKEND_URL = "http://127.0.0.1:47615"
USER_AGENT = "vyntool/0"

PUSH_TOPIC = "vyntool/snapshot"
PUSH_PORT = 1883

# Backend command names, as exposed by the native process.
CMD_GET_SNAPSHOT = "get_snapshot"
CMD_START_SCAN = "start_scan"
CMD_CLEAR_DTCS = "clear_dtcs"
CMD_GET_ADAPTER_STATUS = "get_adapter_status"
CMD_READ_LOG_TAIL = "read_log_tail"
CMD_EXPORT_LOGS = "export_logs"

DEFAULT_SIMULATION_SOURCE = "samples/f250_session.json"
DEFAULT_LOG_TAIL_LINES = 80
NO_LOGS_MESSAGE = "No logs available yet."
