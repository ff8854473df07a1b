"""Process-wide logging setup. Audit events go out as raw JSON lines on their own handler."""
import json
import logging
import sys


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_logs: bool = False) -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not root.handlers:
        console = logging.StreamHandler(sys.stdout)
        if json_logs:
            console.setFormatter(JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
        else:
            console.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s"))
        root.addHandler(console)

    # AuditLog already serializes each entry
    audit = logging.getLogger("audit")
    if audit.handlers:
        return
    audit_handler = logging.StreamHandler(sys.stdout)
    audit_handler.setFormatter(logging.Formatter("%(message)s"))
    audit.addHandler(audit_handler)
    audit.propagate = False
