"""

    Relay rules and the signals they are evaluated against.

    Each relay has exactly one rule, the rule turns the latest signal
    (a price or a set of quick code flags) into ON or OFF.
    Nothing here has side effects, it's all recomputed every cycle.

"""

import logging
if __name__=="__main__":
    logging.basicConfig(level=logging.DEBUG)

from dataclasses import dataclass,field
from typing import Mapping

import settings


# Conditions

@dataclass(frozen=True)
class LessThan:
    threshold:float

@dataclass(frozen=True)
class GreaterThan:
    threshold:float

@dataclass(frozen=True)
class GreaterOrEqual:
    threshold:float

@dataclass(frozen=True)
class DirectFlag:
    code:int

@dataclass(frozen=True)
class InverseFlag:
    code:int


PriceCondition=LessThan|GreaterThan|GreaterOrEqual
FlagCondition=DirectFlag|InverseFlag
Condition=PriceCondition|FlagCondition


@dataclass(frozen=True)
class RelayRule:
    index:int # also the physical relay id
    condition:Condition

    def __str__(self):
        return f"Relay {self.index}: {describe(self.condition)}"


# Signals

@dataclass(frozen=True)
class PriceSignal:
    price:float|None # None means the API had no price for now

@dataclass(frozen=True)
class FlagSignal:
    flags:Mapping[int,bool]=field(default_factory=dict)

@dataclass(frozen=True)
class SafeOverride:
    """
        Fed through evaluate() instead of a real signal when we've given up on the API.

        Price rules are evaluated as if the price was very high, so "below" relays
        go off and "above" relays go on. Flag rules are always off.
    """
    price:float=settings.SAFE_MODE_PRICE


Signal=PriceSignal|FlagSignal|SafeOverride




def _compare(condition:PriceCondition,value:float)->bool:
    match condition:
        case LessThan(threshold=t):
            return value<t
        case GreaterThan(threshold=t):
            return value>t
        case GreaterOrEqual(threshold=t):
            return value>=t
    raise ValueError(f"{condition} is not a price condition")


def evaluate(rule:RelayRule,signal:Signal)->bool:
    """
        Returns the state the relay should be in for this signal

        Any missing data (no price, quick code not in the flags, wrong kind of signal)
        gives False, we never leave a relay on when we don't know what's going on
    """
    condition=rule.condition

    match signal:
        case SafeOverride(price=safe_price):
            if isinstance(condition,(DirectFlag,InverseFlag)):
                return False
            return _compare(condition,safe_price)

        case PriceSignal(price=price):
            if price is None or isinstance(condition,(DirectFlag,InverseFlag)):
                return False
            return _compare(condition,price)

        case FlagSignal(flags=flags):
            match condition:
                case DirectFlag(code=code) if code in flags:
                    return flags[code]
                case InverseFlag(code=code) if code in flags:
                    return not flags[code]
            return False

    raise ValueError(f"Can't evaluate {rule} against unknown signal {signal!r}")


def describe(condition:Condition)->str:
    match condition:
        case LessThan(threshold=t):
            return f"ON below {t}"
        case GreaterThan(threshold=t):
            return f"ON above {t}"
        case GreaterOrEqual(threshold=t):
            return f"ON at or above {t}"
        case DirectFlag(code=code):
            return f"ON when quick code {code} is active"
        case InverseFlag(code=code):
            return f"ON when quick code {code} is NOT active"
    return repr(condition)


_PRICE_CONDITIONS={"below":LessThan,
                   "above":GreaterThan,
                   "at_or_above":GreaterOrEqual}


def price_rules_from_config(config:list[tuple[str,float]])->list[RelayRule]:
    rules=[]
    for index,(on_condition,limit_price) in enumerate(config):
        if on_condition not in _PRICE_CONDITIONS:
            raise ValueError(f"Relay {index} has condition {on_condition!r} which isn't one of {list(_PRICE_CONDITIONS)}")
        rules.append(RelayRule(index,_PRICE_CONDITIONS[on_condition](float(limit_price))))
    return rules


def quick_code_rules_from_config(config:list[tuple[int,bool]])->list[RelayRule]:
    rules=[]
    for index,(code,is_inverse) in enumerate(config):
        condition=InverseFlag(int(code)) if is_inverse else DirectFlag(int(code))
        rules.append(RelayRule(index,condition))
    return rules


def quick_codes(rules:list[RelayRule])->list[int]:
    """The distinct quick codes the rules refer to, in the order first seen"""
    codes=[]
    for rule in rules:
        if isinstance(rule.condition,(DirectFlag,InverseFlag)) and rule.condition.code not in codes:
            codes.append(rule.condition.code)
    return codes



if __name__=="__main__":
    for rule in price_rules_from_config(settings.PRICE_RELAY_RULES):
        for price in (0.015,0.02,0.05,None):
            logging.info(f"{rule} at {price} -> {evaluate(rule,PriceSignal(price))}")
        logging.info(f"{rule} in safe mode -> {evaluate(rule,SafeOverride())}")
