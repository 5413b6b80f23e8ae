"""

    Counts consecutive download failures and decides when somebody needs to be told.

        Healthy  - 0 failures
        Degraded - 1 up to the warning level
        Warned   - warning level up to the maximum, one notification on the way in
        Stopped  - the maximum, one notification, subscribers put the relays in safe mode
                   and the poller gives up until it's restarted

    Notifications only happen when a threshold is crossed, never again for the same crossing.

"""

import logging
if __name__=="__main__":
    logging.basicConfig(level=logging.DEBUG)

import threading

import settings
from notifier import LogNotifier
from state_machine import StateMachine


class FailureTracker(StateMachine):
    def __init__(self,*,notifier:LogNotifier,warn_after:int=settings.WARN_AFTER_FAILURES,max_failures:int=settings.MAX_CONSECUTIVE_FAILURES,subscribers:list[callable]|None=None):
        if max_failures<=warn_after:
            raise ValueError(f"{max_failures=} must be above {warn_after=}")
        super().__init__(name="failure tracker",
                         states=["Healthy","Degraded","Warned","Stopped"],
                         initial_state="Healthy",
                         subscribers=subscribers)
        self.notifier=notifier
        self.warn_after=warn_after
        self.max_failures=max_failures
        self._consecutive_failures=0
        self._lock=threading.Lock() # only this class ever writes the count

    @property
    def consecutive_failures(self)->int:
        with self._lock:
            return self._consecutive_failures

    @property
    def stopped(self)->bool:
        return self.state=="Stopped"

    def state_for(self,failures:int)->str:
        if failures==0:
            return "Healthy"
        if failures<self.warn_after:
            return "Degraded"
        if failures<self.max_failures:
            return "Warned"
        return "Stopped"


    def record_failure(self,reason:str)->int:
        """Returns the number of consecutive failures including this one"""
        # Only the count is updated under the lock, notifications and subscribers
        # (safe mode) can block on the network so they run after it's released
        with self._lock:
            if self._consecutive_failures>=self.max_failures:
                logging.error(f"Failure after retries were already stopped, not counted: {reason}")
                return self._consecutive_failures

            self._consecutive_failures+=1
            failures=self._consecutive_failures

        logging.warning(f"Download error #{failures}: {reason}")
        if failures==self.warn_after:
            self.notifier.send("Spot price download failed",
                               f"Download failed {failures} times in a row. Error: {reason}")
        elif failures==self.max_failures:
            self.notifier.send("Spot price downloads stopped",
                               f"{failures} consecutive download errors! Setting relays to safe state. Last error: {reason}")
            logging.critical(f"{failures} consecutive download failures! Stopping retries.")

        new_state=self.state_for(failures)
        if new_state!=self.state:
            self.set_state(new_state=new_state,reason=reason)
        return failures


    def record_success(self)->int:
        """Returns how many failures there were before this success"""
        with self._lock:
            previous=self._consecutive_failures
            self._consecutive_failures=0

        if previous>=self.warn_after:
            self.notifier.send("Spot price download working again",
                               f"Downloads are working again after {previous} attempts and everything is back to normal.")

        if self.state!="Healthy":
            self.set_state(new_state="Healthy",reason=f"download succeeded after {previous} failures")
        return previous

    def __str__(self):
        return f"{super().__str__()}, {self.consecutive_failures} consecutive failures"
