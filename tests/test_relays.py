from unittest.mock import MagicMock, patch

import pytest
import requests
from gpiozero.exc import GPIOZeroError

from errors import ActuationError
from fakes import FakeActuator
from relays import ActuationResult, GpioRelayBoard, RelayDriver, ShellySwitch, actuator_from_settings
from rules import (DirectFlag, FlagSignal, GreaterOrEqual, GreaterThan, InverseFlag, LessThan,
                   PriceSignal, RelayRule)

PRICE_RULES = [RelayRule(0, LessThan(0.02)), RelayRule(1, GreaterOrEqual(0.02))]


class TestRelayDriver:
    def test_cheap_price_scenario(self, actuator, notifier):
        driver = RelayDriver(rules=PRICE_RULES, actuator=actuator, notifier=notifier)
        results = driver.apply(PriceSignal(0.015))
        assert actuator.calls == [(0, True), (1, False)]
        assert results == [ActuationResult(0, True, True), ActuationResult(1, False, True)]
        assert notifier.sent == []

    def test_no_price_turns_everything_off(self, actuator, notifier):
        driver = RelayDriver(rules=PRICE_RULES, actuator=actuator, notifier=notifier)
        driver.apply(PriceSignal(None))
        assert actuator.calls == [(0, False), (1, False)]

    def test_safe_mode_for_price_rules(self, actuator, notifier):
        rules = [RelayRule(0, LessThan(0.01999999)), RelayRule(1, GreaterThan(0.02))]
        RelayDriver(rules=rules, actuator=actuator, notifier=notifier).safe_mode()
        assert actuator.calls == [(0, False), (1, True)]

    def test_safe_mode_for_quick_codes_is_all_off(self, actuator, notifier):
        rules = [RelayRule(0, DirectFlag(142)), RelayRule(1, InverseFlag(142))]
        RelayDriver(rules=rules, actuator=actuator, notifier=notifier).safe_mode()
        assert actuator.calls == [(0, False), (1, False)]

    def test_quick_code_flags(self, actuator, notifier):
        rules = [RelayRule(0, DirectFlag(142)), RelayRule(1, InverseFlag(142))]
        RelayDriver(rules=rules, actuator=actuator, notifier=notifier).apply(FlagSignal({142: False}))
        assert actuator.calls == [(0, False), (1, True)]

    def test_one_failing_relay_does_not_stop_the_others(self, notifier):
        actuator = FakeActuator(failing=[0])
        driver = RelayDriver(rules=PRICE_RULES, actuator=actuator, notifier=notifier)
        results = driver.apply(PriceSignal(0.05))
        assert actuator.calls == [(0, False), (1, True)]
        assert results == [ActuationResult(0, False, False, "relay stuck"), ActuationResult(1, True, True)]
        assert notifier.titles == ["Relay control error"]
        assert "relay 0" in notifier.sent[0][1]
        assert "relay stuck" in notifier.sent[0][1]

    def test_unexpected_actuator_errors_are_reported_too(self, notifier):
        actuator = MagicMock()
        actuator.set.side_effect = [OSError("bus error"), None]
        driver = RelayDriver(rules=PRICE_RULES, actuator=actuator, notifier=notifier)
        results = driver.apply(PriceSignal(0.05))
        assert [result.ok for result in results] == [False, True]
        assert results[0].error == "bus error"

    def test_remembers_last_results(self, actuator, notifier):
        driver = RelayDriver(rules=PRICE_RULES, actuator=actuator, notifier=notifier)
        assert driver.last_results == []
        results = driver.apply(PriceSignal(0.015))
        assert driver.last_results == results
        assert driver.last_applied is not None


class TestGpioRelayBoard:
    def test_switches_relays(self, mock_pins):
        board = GpioRelayBoard(2)
        assert not board.relays[0].is_on()
        board.set(0, True)
        assert board.relays[0].is_on()
        assert not board.relays[1].is_on()
        board.set(0, False)
        assert not board.relays[0].is_on()

    def test_relay_zero_is_board_relay_one(self, mock_pins):
        board = GpioRelayBoard(2)
        assert board.relays[0].pin == 37
        assert board.relays[1].pin == 35

    def test_unknown_relay(self, mock_pins):
        board = GpioRelayBoard(1)
        with pytest.raises(ActuationError) as excinfo:
            board.set(3, True)
        assert excinfo.value.index == 3

    def test_gpio_errors_become_actuation_errors(self, mock_pins):
        board = GpioRelayBoard(1)
        board.relays[0].output = MagicMock()
        board.relays[0].output.on.side_effect = GPIOZeroError("pin is broken")
        with pytest.raises(ActuationError, match="pin is broken"):
            board.set(0, True)

    def test_reset_all(self, mock_pins):
        board = GpioRelayBoard(2)
        board.set(0, True)
        board.set(1, True)
        board.reset_all()
        assert not board.relays[0].is_on()
        assert not board.relays[1].is_on()

    def test_too_many_relays(self, mock_pins):
        with pytest.raises(ValueError):
            GpioRelayBoard(9)


class TestShellySwitch:
    @patch("relays.requests.get")
    def test_switch_set(self, mock_get):
        mock_get.return_value = MagicMock(status_code=200)
        ShellySwitch("10.0.0.5", timeout_s=5).set(1, True)
        mock_get.assert_called_once_with("http://10.0.0.5/rpc/Switch.Set",
                                         params={"id": 1, "on": "true"}, timeout=5)

    @patch("relays.requests.get")
    def test_error_status(self, mock_get):
        mock_get.return_value = MagicMock(status_code=500, text="internal error")
        with pytest.raises(ActuationError, match="500"):
            ShellySwitch("10.0.0.5").set(0, False)

    @patch("relays.requests.get", side_effect=requests.ConnectionError("no route to host"))
    def test_unreachable(self, mock_get):
        with pytest.raises(ActuationError, match="no route to host"):
            ShellySwitch("10.0.0.5").set(0, False)


def test_actuator_from_settings_rejects_unknown_backend():
    with patch("relays.settings.RELAY_BACKEND", "carrier pigeon"):
        with pytest.raises(ValueError):
            actuator_from_settings(2)


def test_actuator_from_settings_shelly():
    with patch("relays.settings.RELAY_BACKEND", "shelly"):
        assert isinstance(actuator_from_settings(2), ShellySwitch)
