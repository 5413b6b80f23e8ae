"""

    Works out how long to wait before the next fetch.

    After a failure: a linear back off, base delay times the failure count, capped.
    After a success: wait for the next quarter hour (plus a small buffer) on the wall clock,
    so we don't drift however long each cycle took.

"""

import settings


def retry_delay(consecutive_failures:int,base_s:float=settings.RETRY_BASE_DELAY_S,max_multiplier:int=settings.MAX_BACKOFF_MULTIPLIER)->float:
    """consecutive_failures is the count including the failure we just had"""
    if consecutive_failures<1:
        raise ValueError(f"Retry delay asked for with {consecutive_failures=}, there must have been at least one failure")
    return base_s*min(consecutive_failures,max_multiplier)


def aligned_delay(now_s:float,period_s:float=settings.POLL_PERIOD_S,buffer_s:float=settings.ALIGNMENT_BUFFER_S)->float:
    """
        now_s is a unix timestamp (time.time())

        Returns seconds until the next period boundary counted from the top of the hour,
        plus buffer_s. Done in whole milliseconds so float rounding can't push us
        a whole period out.
    """
    ms_since_hour=int(round(now_s*1000))%(60*60*1000)
    period_ms=int(round(period_s*1000))
    delay_ms=period_ms-(ms_since_hour%period_ms)
    return delay_ms/1000+buffer_s
