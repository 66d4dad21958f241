import json
import sys
from datetime import datetime, timezone


def log_event(level: str, event: str, **fields) -> None:
    payload = {
        "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f") + "Z",
        "level": level.lower(),
        "event": event,
    }
    payload.update(fields or {})
    try:
        # Decimal amounts and enums are written as their string form
        sys.stdout.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")
    except Exception:
        # best-effort logging
        pass
