import logging
if __name__=="__main__":
    logging.basicConfig(level=logging.DEBUG)
import time


class StateMachine:
    def __init__(self,*,name:str,states:list[str],initial_state:str,subscribers:list[callable]|None=None):
        """
            name is the name of the statemachine - very useful for debugging
            states is a list of strings representing all the valid state names
            initial_state must be a valid string state name from the list
            subscribers is a list of callables, these receive keyword parameters:
                subscriber(state_machine=self,new_state=new_state,reason=reason,type="STATE_CHANGE")

        """
        if initial_state not in states:
            raise ValueError(f"Initial state {initial_state} for {name} is not one of the allowed states: {states}")
        self.name=name
        self.valid_states=states
        self._state=initial_state
        self.subscribers=list(subscribers or [])
        self.initial_state:str=initial_state
        self.last_change_reason:str=""
        self.last_change_time:float=time.time()
        self.previous_state="undefined"


    @property
    def state(self):
        return self._state

    def add_subscriber(self,subscriber:callable):
        self.subscribers.append(subscriber)


    def set_state(self,*,new_state:str,reason:str=""):
        """
            new_state must be a valid state name string
            reason, just a string that's available to see why the last state change happened, useful for debugging

            Subscribers are told after the state has changed, so they can read it back
        """
        if new_state not in self.valid_states:
            raise ValueError(f"New state of {new_state} for {self.name} because of {reason} is not one of the allowed states: {self.valid_states}")

        self.previous_state=self.state
        self._state=new_state
        self.last_change_reason=reason
        self.last_change_time=time.time()
        logging.info(f"{self.name} from >>>>> {self.previous_state} >>>>>> {self.state} because {reason}")
        for subscriber in self.subscribers:
            subscriber(state_machine=self,new_state=new_state,reason=reason,type="STATE_CHANGE")

    def __str__(self):
        return f"{self.name}: {self.state} (since {time.ctime(self.last_change_time)}, {self.last_change_reason or 'initial'})"
