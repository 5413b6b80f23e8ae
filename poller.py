"""

    The control loop, one cycle at a time:

        fetch -> record success/failure -> set relays -> work out the next fetch -> wait

    Only this thread ever fetches or sets relays, so there's never more than
    one cycle in flight.

"""

import logging
if __name__=="__main__":
    logging.basicConfig(level=logging.DEBUG,
                        format="%(asctime)s [%(threadName)s] %(levelname)s %(name)s: %(message)s",
                        datefmt="%Y-%m-%d %H:%M:%S")

import threading
import time

import notifier as notifier_module
import rules
import scheduler
import settings
from errors import FetchError
from failure_tracker import FailureTracker
from fetcher import Fetcher, PriceFetcher, QuickCodeFetcher
from notifier import LogNotifier
from relays import RelayDriver, actuator_from_settings


class Poller(threading.Thread):
    def __init__(self,*,name:str,fetcher:Fetcher,driver:RelayDriver,notifier:LogNotifier,tracker:FailureTracker|None=None,clock=time.time):
        super().__init__(daemon=True)
        self.name=name
        self.fetcher=fetcher
        self.driver=driver
        self.notifier=notifier
        self.tracker=tracker or FailureTracker(notifier=notifier)
        self.tracker.add_subscriber(self.on_tracker_change)
        self.clock=clock
        self.stop_requested=threading.Event()
        self.stopped=False
        self.last_signal=None
        self.last_success_time:float|None=None
        self.next_fetch_time:float|None=None

    def on_tracker_change(self,*,state_machine:FailureTracker,new_state:str,reason:str,type:str):
        if new_state=="Stopped":
            self.driver.safe_mode()

    def run_cycle(self)->float|None:
        """
            One full fetch, decide, actuate cycle.
            Returns the seconds to wait until the next one, or None if we've given up
        """
        try:
            signal=self.fetcher.fetch()
        except FetchError as e:
            return self.handle_failure(str(e))
        except Exception as e:
            logging.exception("Unexpected error fetching the signal")
            return self.handle_failure(f"Unexpected error: {type(e).__name__}: {e}")

        self.tracker.record_success()
        self.last_signal=signal
        self.last_success_time=self.clock()
        self.driver.apply(signal)

        delay=scheduler.aligned_delay(self.clock())
        logging.info(f"Scheduled next download in {delay/60:.2f} minutes")
        return delay

    def handle_failure(self,reason:str)->float|None:
        failures=self.tracker.record_failure(reason)
        if self.tracker.stopped:
            return None
        delay=scheduler.retry_delay(failures)
        logging.info(f"Scheduling retry in {delay} seconds")
        return delay

    def run(self):
        logging.info(f"Initializing {self.name}...")
        self.notifier.send("Device starting",f"{self.name} is starting.")
        delay=0.0
        while not self.stop_requested.wait(delay):
            delay=self.run_cycle()
            if delay is None:
                logging.critical(f"{self.name} has stopped fetching, restart to try again")
                self.next_fetch_time=None
                break
            self.next_fetch_time=self.clock()+delay
        self.stopped=True

    def stop(self,timeout_s:float=10):
        self.stop_requested.set()
        logging.debug(f"{self.name}->stop requested")
        self.join(timeout_s)
        if self.is_alive():
            raise RuntimeError(f"Failed to stop {self.name} {timeout_s} seconds after stop requested")
        logging.debug(f"{self.name}->stopped cleanly")

    def __str__(self):
        next_fetch=time.ctime(self.next_fetch_time) if self.next_fetch_time else "none scheduled"
        last_success=time.ctime(self.last_success_time) if self.last_success_time else "never"
        relays="\n            ".join(str(result) for result in self.driver.last_results) or "not set yet"
        return f"""{self.name}:
        {self.tracker}
        Last signal: {self.last_signal}
        Last successful download: {last_success}
        Next download: {next_fetch}
        Relays:
            {relays}"""


def from_settings()->Poller:
    notifier=notifier_module.from_settings()
    match settings.POLLER_VARIANT:
        case "price":
            relay_rules=rules.price_rules_from_config(settings.PRICE_RELAY_RULES)
            fetcher=PriceFetcher()
            name="Spot price relay"
        case "quick_code":
            relay_rules=rules.quick_code_rules_from_config(settings.QUICK_CODE_RELAY_RULES)
            codes=rules.quick_codes(relay_rules)
            if not codes:
                raise ValueError("No quick codes configured in QUICK_CODE_RELAY_RULES, nothing to fetch")
            fetcher=QuickCodeFetcher(codes=codes)
            name="Spot quick code relay"
        case _:
            raise ValueError(f"POLLER_VARIANT {settings.POLLER_VARIANT!r} must be 'price' or 'quick_code'")

    driver=RelayDriver(rules=relay_rules,actuator=actuator_from_settings(len(relay_rules)),notifier=notifier)
    return Poller(name=name,fetcher=fetcher,driver=driver,notifier=notifier)



if __name__=="__main__":
    poller=from_settings()
    poller.start()
    while poller.is_alive():
        time.sleep(60)
        logging.info(str(poller))
