

POLLER_VARIANT="price" # "price" for spot price thresholds, "quick_code" for spot-hinta.fi quick codes

PRICE_API_URL="https://api.spot-hinta.fi/JustNow"
PRICE_FIELD="PriceWithTax" # €/kWh including tax
QUICK_CODE_API_URL="https://api.spot-hinta.fi/QuickCode"

FETCH_TIMEOUT_S=10


# One entry per relay, in relay order (entry 0 drives relay 0)
# conditions are "below", "above" or "at_or_above"
PRICE_RELAY_RULES=[("below",0.01999999),
                   ("above",0.02)]

# (quick code, is_inverse) - see https://spot-hinta.fi/Pikakoodit/
QUICK_CODE_RELAY_RULES=[(142,False),
                        (142,True)]


RETRY_BASE_DELAY_S=60
MAX_BACKOFF_MULTIPLIER=5 # retries wait 60,120,180,240,300,300... seconds

WARN_AFTER_FAILURES=3 # notify once when we hit this many failures in a row
MAX_CONSECUTIVE_FAILURES=5 # give up, go to safe mode and stop fetching
if MAX_CONSECUTIVE_FAILURES<=WARN_AFTER_FAILURES:
    raise ValueError(f"{MAX_CONSECUTIVE_FAILURES=} must be above {WARN_AFTER_FAILURES=} or the stop notification and safe mode never happen")


POLL_PERIOD_S=15*60 # fetch on every quarter hour
ALIGNMENT_BUFFER_S=2 # land just after the boundary so the new price is published
if 3600%POLL_PERIOD_S!=0:
    raise ValueError(f"{POLL_PERIOD_S=} must divide an hour exactly to stay aligned to the clock")


SAFE_MODE_PRICE=999.0 # relays are set as if electricity was this expensive


RELAY_BACKEND="gpio" # "gpio" for the relay HAT, "shelly" to drive a Shelly over its RPC api
SHELLY_HOST="192.168.1.50"


NOTIFY_WEBHOOK_URL="" # leave empty to only log alerts
NOTIFY_TIMEOUT_S=10


STATUS_PORT=8181
