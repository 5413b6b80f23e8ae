import logging
if __name__=="__main__":
    logging.basicConfig(level=logging.DEBUG)

from dataclasses import dataclass
from enum import Enum
import time

from gpiozero import LED
from gpiozero.exc import GPIOZeroError
import requests

import settings
from errors import ActuationError
from notifier import LogNotifier
from rules import RelayRule, SafeOverride, Signal, evaluate


class RelayIs(Enum):
    OFF = 0
    ON = 1




class Relay:
    pin_mapping={1:37,
                 2:35,
                 3:33,
                 4:31,
                 5:29,
                 6:23,
                 7:21,
                 8:19}

    def __init__(self,name:str,relay_number:int,initial_state=RelayIs.OFF):
        if relay_number not in self.pin_mapping:
            raise ValueError(f"Relay number {relay_number} for {name} isn't on the board, must be one of {list(self.pin_mapping)}")
        self.name=name
        self.pin=self.pin_mapping[relay_number]
        self.output=LED(f"BOARD{self.pin}")
        self.initial_state=initial_state
        self.set_value(initial_state)

    def is_on(self)->bool:
        return self.output.value==RelayIs.ON.value

    def set_value(self,value:RelayIs):
        if value == RelayIs.OFF:
            self.output.off()
            logging.info(f">>>>>>> Switched: {self.name} off")

        else:
            self.output.on()
            logging.info(f">>>>> Switched {self.name} on")

    def __str__(self):
        return f"Relay {self.name} = {self.is_on()}"


class GpioRelayBoard:
    """Relay index 0 is relay 1 on the board, and so on"""

    def __init__(self,relay_count:int):
        self.relays=[Relay(f"relay {index}",index+1) for index in range(relay_count)]

    def set(self,index:int,on:bool):
        if not 0<=index<len(self.relays):
            raise ActuationError(index,f"no such relay, the board has {len(self.relays)}")
        try:
            self.relays[index].set_value(RelayIs.ON if on else RelayIs.OFF)
        except GPIOZeroError as e:
            raise ActuationError(index,str(e)) from e

    def reset_all(self):
        for rel in self.relays:
            rel.set_value(rel.initial_state)

    def __str__(self):
        return ", ".join(str(rel) for rel in self.relays)


class ShellySwitch:
    """Drives the outputs of a Shelly Gen2 device through its local RPC api"""

    def __init__(self,host:str,timeout_s:float=settings.FETCH_TIMEOUT_S):
        self.host=host
        self.timeout_s=timeout_s

    def set(self,index:int,on:bool):
        url=f"http://{self.host}/rpc/Switch.Set"
        try:
            r=requests.get(url,params={"id":index,"on":"true" if on else "false"},timeout=self.timeout_s)
        except requests.RequestException as e:
            raise ActuationError(index,str(e)) from e
        if r.status_code!=200:
            raise ActuationError(index,f"Shelly returned {r.status_code}: {r.text[:200]}")

    def __str__(self):
        return f"Shelly at {self.host}"




@dataclass
class ActuationResult:
    index:int
    target:bool
    ok:bool
    error:str=""

    def __str__(self):
        state="ON" if self.target else "OFF"
        return f"Relay {self.index} -> {state}" + ("" if self.ok else f" FAILED: {self.error}")


class RelayDriver:
    """
        Works out the target state of every relay from a signal and sets it.

        A relay that fails to switch is reported and we carry on with the rest,
        these failures never count against the download failures.
    """

    def __init__(self,*,rules:list[RelayRule],actuator,notifier:LogNotifier):
        self.rules=rules
        self.actuator=actuator
        self.notifier=notifier
        self.last_results:list[ActuationResult]=[]
        self.last_applied:float|None=None

    def apply(self,signal:Signal)->list[ActuationResult]:
        logging.info(f"Controlling relays on {self.actuator} for {signal}")
        results=[]
        for rule in self.rules:
            target=evaluate(rule,signal)
            logging.info(f"{rule} - Target state: {'ON' if target else 'OFF'}")
            try:
                self.actuator.set(rule.index,target)
            except Exception as e:
                detail=e.detail if isinstance(e,ActuationError) else str(e)
                logging.error(f"Failed to set relay {rule.index} state: {detail}")
                self.notifier.send("Relay control error",
                                   f"Setting the state of relay {rule.index} failed: {detail}")
                results.append(ActuationResult(rule.index,target,False,detail))
                continue
            logging.info(f"Relay {rule.index} state set successfully to {'ON' if target else 'OFF'}")
            results.append(ActuationResult(rule.index,target,True))

        self.last_results=results
        self.last_applied=time.time()
        return results

    def safe_mode(self)->list[ActuationResult]:
        logging.warning("Setting relays to safe mode (high price assumption)")
        return self.apply(SafeOverride())


def actuator_from_settings(relay_count:int):
    match settings.RELAY_BACKEND:
        case "gpio":
            return GpioRelayBoard(relay_count)
        case "shelly":
            return ShellySwitch(settings.SHELLY_HOST)
    raise ValueError(f"RELAY_BACKEND {settings.RELAY_BACKEND!r} must be 'gpio' or 'shelly'")




if __name__=="__main__":
    board=GpioRelayBoard(2)
    end_time=time.time()+10
    while time.time()<end_time:
        board.set(0,True)
        time.sleep(1)
        board.set(1,True)
        time.sleep(1)
        board.set(0,False)
        time.sleep(1)
        board.set(1,False)
        time.sleep(1)
    print("Finished, resetting all to off...")

    board.reset_all()
