import time


def unix_now() -> int:
    return int(time.time())
