import threading
import unittest

from lockstep.buffer import Buffer, channel
from lockstep.error import BufferEmptyError, BufferFullError


class TestBuffer(unittest.TestCase):
    def test_handoff(self):
        tx, rx = channel()
        tx.send(1)
        self.assertEqual(rx.recv(), 1)
        tx.send(2)
        self.assertEqual(rx.recv(), 2)

    def test_occupied(self):
        buffer = Buffer()
        self.assertFalse(buffer.occupied)
        buffer.put("x")
        self.assertTrue(buffer.occupied)
        buffer.get()
        self.assertFalse(buffer.occupied)

    def test_send_to_full_slot(self):
        tx, rx = channel()
        tx.send(1)
        with self.assertRaises(BufferFullError):
            tx.send(2, block=False)
        # The first value is not replaced.
        self.assertEqual(rx.recv(), 1)

    def test_recv_from_empty_slot(self):
        _, rx = channel()
        with self.assertRaises(BufferEmptyError):
            rx.recv(block=False)

    def test_none_is_a_value(self):
        tx, rx = channel()
        tx.send(None)
        self.assertTrue(rx.buffer.occupied)
        self.assertIsNone(rx.recv(block=False))

    def test_recv_blocks_until_send(self):
        tx, rx = channel()
        received = []

        def receiver():
            received.append(rx.recv())

        thread = threading.Thread(target=receiver)
        thread.start()
        tx.send("hello")
        thread.join(timeout=5)
        self.assertFalse(thread.is_alive())
        self.assertEqual(received, ["hello"])

    def test_send_blocks_until_recv(self):
        tx, rx = channel()
        tx.send(1)
        sent = threading.Event()

        def sender():
            tx.send(2)
            sent.set()

        thread = threading.Thread(target=sender)
        thread.start()
        self.assertFalse(sent.wait(timeout=0.05))
        self.assertEqual(rx.recv(), 1)
        thread.join(timeout=5)
        self.assertTrue(sent.is_set())
        self.assertEqual(rx.recv(), 2)

    def test_repr(self):
        tx, rx = channel()
        tx.send(1)
        self.assertEqual(repr(tx), "Sender(occupied=True)")
        self.assertEqual(repr(rx), "Receiver(occupied=True)")
