#!/usr/bin/env python3
"""
Integration tests for the BFI system wrapper and console device.

Run with:  python -m pytest test_system.py
"""
import os
import tempfile
import unittest

from bfi import AllocationError, InvalidProgramError
from bfi_devices import Console, EOF_ZERO
from bfi_system import BFSystem


# ---------------------------------------------------------------------------
#  Helpers
# ---------------------------------------------------------------------------

def make_system(mem_size: int = 256, **kwargs) -> BFSystem:
    return BFSystem(mem_size=mem_size, **kwargs)


def capture_tx(bf: BFSystem):
    """Set up console output capture, return list ref."""
    buf = []
    bf.console.on_tx = lambda b: buf.append(b)
    return buf


# ---------------------------------------------------------------------------
#  Console
# ---------------------------------------------------------------------------

class TestConsole(unittest.TestCase):
    def test_tx_callback(self):
        con = Console()
        out = []
        con.on_tx = lambda b: out.append(b)
        con.write_byte(0x41)
        con.write_byte(0x142)
        self.assertEqual(out, [0x41, 0x42])
        self.assertEqual(con.tx_count, 2)
        self.assertEqual(len(con.tx_buffer), 0)

    def test_tx_buffered_without_sink(self):
        con = Console()
        con.write_byte(0x41)
        con.write_byte(0x142)
        self.assertEqual(con.drain_tx(), b"AB")
        self.assertEqual(con.drain_tx(), b"")
        self.assertEqual(con.tx_count, 2)

    def test_rx_inject(self):
        con = Console()
        con.inject_input("Hi")
        self.assertTrue(con.has_rx_data)
        self.assertEqual(con.read_byte(), ord("H"))
        self.assertEqual(con.read_byte(), ord("i"))
        self.assertIsNone(con.read_byte())
        self.assertEqual(con.rx_count, 2)

    def test_rx_latin1(self):
        con = Console()
        con.inject_input("\xe9")
        self.assertEqual(con.read_byte(), 0xE9)

    def test_eof_values(self):
        self.assertEqual(Console().eof_value(9), 9)
        self.assertEqual(Console(eof=EOF_ZERO).eof_value(9), 0)
        self.assertEqual(Console(eof="max").eof_value(9), 255)

    def test_unknown_eof_policy(self):
        with self.assertRaises(ValueError):
            Console(eof="ignore")


# ---------------------------------------------------------------------------
#  System
# ---------------------------------------------------------------------------

class TestSystem(unittest.TestCase):
    def test_memory_persists_between_runs(self):
        bf = make_system()
        bf.execute("+++>")
        bf.execute("++")
        self.assertEqual(bf.tape.value_at(0), 3)
        self.assertEqual(bf.tape.value_at(1), 2)
        self.assertEqual(bf.run_count, 2)

    def test_failed_run_not_counted(self):
        bf = make_system()
        with self.assertRaises(InvalidProgramError):
            bf.execute("[")
        self.assertEqual(bf.run_count, 0)

    def test_reset(self):
        bf = make_system()
        bf.execute("+++>>+")
        bf.reset()
        self.assertEqual(bf.tape.cursor, 0)
        self.assertEqual(bf.tape.dump(0, bf.mem_size), bytes(bf.mem_size))

    def test_resize(self):
        bf = make_system()
        bf.execute("+>+")
        bf.resize(16)
        self.assertEqual(bf.mem_size, 16)
        self.assertEqual(bf.tape.cursor, 0)
        self.assertEqual(bf.tape.value_at(0), 0)

    def test_failed_resize_keeps_tape(self):
        bf = make_system(mem_size=8)
        bf.execute("+++")
        with self.assertRaises(AllocationError):
            bf.resize(-1)
        self.assertEqual(bf.mem_size, 8)
        self.assertEqual(bf.tape.current_value(), 3)

    def test_bad_initial_size(self):
        with self.assertRaises(AllocationError):
            BFSystem(mem_size=0)

    def test_tx_output(self):
        bf = make_system()
        buf = capture_tx(bf)
        bf.execute("+" * 72 + "." + "+" * 33 + ".")
        self.assertEqual(buf, [72, 105])
        self.assertEqual(bf.get_tx_output(), "")

    def test_tx_output_buffered(self):
        bf = make_system()
        bf.execute("+" * 72 + "." + "+" * 33 + ".")
        self.assertEqual(bf.get_tx_output(), "Hi")
        self.assertEqual(bf.get_tx_output(), "")

    def test_input(self):
        bf = make_system()
        bf.console.inject_input("ab")
        bf.execute(",>,")
        self.assertEqual(bf.tape.dump(0, 2), b"ab")

    def test_loose_system(self):
        bf = make_system(strict=False)
        bf.execute("[]")
        self.assertEqual(bf.run_count, 1)

    def test_eof_option(self):
        bf = make_system(eof=EOF_ZERO)
        bf.execute("+,")
        self.assertEqual(bf.tape.current_value(), 0)

    def test_run_file(self):
        with tempfile.NamedTemporaryFile("w", suffix=".bf", delete=False) as f:
            f.write("increment twice ++\nmove right > then once +\n")
            path = f.name
        try:
            bf = make_system()
            self.assertEqual(bf.load_file(path).count("+"), 3)
            steps = bf.run_file(path)
            self.assertEqual(steps, 4)
            self.assertEqual(bf.tape.value_at(0), 2)
            self.assertEqual(bf.tape.value_at(1), 1)
        finally:
            os.unlink(path)

    def test_dump_state(self):
        bf = make_system()
        bf.execute(">" + "+" * 17)
        state = bf.dump_state()
        self.assertIn("mem=256", state)
        self.assertIn("ptr=1", state)
        self.assertIn("val=17 (0x11)", state)

    def test_independent_instances(self):
        a = make_system()
        b = make_system()
        a.execute("+++")
        self.assertEqual(b.tape.current_value(), 0)


if __name__ == "__main__":
    unittest.main()
