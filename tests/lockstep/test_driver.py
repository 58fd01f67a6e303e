import os
import threading
import unittest
from unittest import mock

from lockstep.driver import Driver
from lockstep.error import (
    PoisonedError,
    ProcedureCompletedError,
    ProtocolViolation,
    ReentrancyError,
)
from lockstep.primitive import pend_once


def echo(rx, tx):
    x = rx.recv()
    while True:
        tx.send(x)
        x = None
        yield from pend_once()
        x = rx.recv()


def finishes(rx, tx):
    rx.recv()
    tx.send("once")
    yield from pend_once()
    rx.recv()


def foreign(rx, tx):
    rx.recv()
    tx.send(1)
    yield "not pending"


def silent(rx, tx):
    while True:
        rx.recv()
        yield from pend_once()


def greedy(rx, tx):
    while True:
        tx.send(0)
        yield from pend_once()


def picky(rx, tx):
    while True:
        x = rx.recv()
        if x == "bad":
            raise ValueError(x)
        tx.send(x)
        yield from pend_once()


class TestDriver(unittest.TestCase):
    def test_echo(self):
        driver = Driver(echo)
        self.assertEqual(driver(1), 1)
        self.assertEqual(driver("a"), "a")
        self.assertEqual(driver(None), None)
        self.assertEqual(driver.ticks, 3)
        self.assertTrue(driver.idle)
        self.assertFalse(driver.poisoned)

    def test_construction_runs_nothing(self):
        effects = []

        def template(rx, tx):
            effects.append("started")
            while True:
                tx.send(rx.recv())
                yield from pend_once()

        driver = Driver(template)
        self.assertEqual(effects, [])
        self.assertEqual(driver.ticks, 0)
        self.assertTrue(driver.idle)

        self.assertEqual(driver(5), 5)
        self.assertEqual(effects, ["started"])

    def test_procedure_completed(self):
        driver = Driver(finishes)
        self.assertEqual(driver(None), "once")
        with self.assertRaises(ProcedureCompletedError):
            driver(None)
        self.assertTrue(driver.poisoned)
        with self.assertRaises(PoisonedError):
            driver(None)

    def test_foreign_suspension(self):
        driver = Driver(foreign)
        with self.assertLogs("lockstep.driver", level="CRITICAL"):
            with self.assertRaisesRegex(ProtocolViolation, "not pending"):
                driver(None)
        with self.assertRaises(PoisonedError):
            driver(None)

    def test_suspend_without_output(self):
        driver = Driver(silent)
        with self.assertRaisesRegex(ProtocolViolation, "without publishing"):
            driver(None)
        self.assertTrue(driver.poisoned)

    def test_input_never_consumed(self):
        driver = Driver(greedy)
        self.assertEqual(driver(1), 0)
        self.assertFalse(driver.idle)
        with self.assertRaisesRegex(ReentrancyError, "never consumed"):
            driver(2)
        self.assertTrue(driver.poisoned)

    def test_procedure_exception(self):
        driver = Driver(picky)
        self.assertEqual(driver("good"), "good")
        with self.assertRaises(ValueError):
            driver("bad")
        self.assertTrue(driver.poisoned)
        with self.assertRaises(PoisonedError):
            driver("good")

    def test_call_from_procedure(self):
        drivers = []

        def recursive(rx, tx):
            while True:
                rx.recv()
                tx.send(drivers[0](None))
                yield from pend_once()

        driver = Driver(recursive)
        drivers.append(driver)
        with self.assertRaises(ReentrancyError):
            driver(None)
        self.assertTrue(driver.poisoned)

    def test_call_from_another_thread(self):
        started = threading.Event()
        release = threading.Event()

        def blocking(rx, tx):
            while True:
                x = rx.recv()
                started.set()
                release.wait(timeout=5)
                tx.send(x)
                yield from pend_once()

        driver = Driver(blocking)
        results = []
        thread = threading.Thread(target=lambda: results.append(driver(1)))
        thread.start()
        try:
            self.assertTrue(started.wait(timeout=5))
            with self.assertRaises(ReentrancyError):
                driver(2)
        finally:
            release.set()
            thread.join(timeout=5)
        self.assertEqual(results, [1])
        self.assertTrue(driver.poisoned)

    @mock.patch.dict(os.environ, {"LOCKSTEP_ABORT_ON_VIOLATION": "1"})
    @mock.patch("lockstep.driver.os.abort")
    def test_abort_on_violation(self, abort):
        driver = Driver(foreign)
        with self.assertRaises(ProtocolViolation):
            driver(None)
        abort.assert_called_once_with()

    @mock.patch.dict(os.environ, {"LOCKSTEP_ABORT_ON_VIOLATION": "1"})
    @mock.patch("lockstep.driver.os.abort")
    def test_no_abort_on_procedure_exception(self, abort):
        driver = Driver(picky)
        with self.assertRaises(ValueError):
            driver("bad")
        abort.assert_not_called()
