import logging
import json
import datetime

# Lowercase set of keys to redact
SENSITIVE_KEYS = frozenset({
    'password', 'token', 'access', 'refresh',
    'secret', 'secret_key', 'authorization', 'signature',
    'personal_id', 'merchant_key',
})

REDACTED = '***REDACTED***'


def scrub(data, keys=SENSITIVE_KEYS):
    """
    Recursively redact sensitive data from dicts and lists.
    """
    if isinstance(data, dict):
        return {
            k: scrub(v, keys) if str(k).lower() not in keys else REDACTED
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [scrub(i, keys) for i in data]
    return data


class JSONFormatter(logging.Formatter):
    """
    Production-safe JSON Formatter.
    Recursively scrubs sensitive keys from logs.
    """

    SENSITIVE_KEYS = SENSITIVE_KEYS

    def _scrub(self, data):
        return scrub(data, self.SENSITIVE_KEYS)

    def format(self, record):
        if isinstance(record.msg, dict):
            record.msg = self._scrub(record.msg)

        if isinstance(record.args, dict):
            record.args = self._scrub(record.args)

        log_record = {
            "ts": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "lvl": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
            "path": record.pathname,
            "line": record.lineno,
        }

        # Contextual traceability
        for attr in ("order_id", "order_code", "user_id", "request_path"):
            if hasattr(record, attr):
                log_record[attr] = getattr(record, attr)

        if record.exc_info:
            log_record['exc'] = self.formatException(record.exc_info)

        return json.dumps(log_record, default=str)
