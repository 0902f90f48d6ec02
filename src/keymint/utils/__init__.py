import time


def now_epoch() -> int:
    """Current Unix time in whole seconds."""
    return int(time.time())
