# common.py

# Copyright (C) 2025 The lc3vm authors. License: GNU GPL Version 3
# See lc3vm/README and LICENSE

# This file is part of lc3vm. lc3vm is free software: you can
# redistribute it and/or modify it under the terms of the GNU General
# Public License as published by the Free Software Foundation, either
# version 3 of the License, or (at your option) any later version.
# lc3vm is distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details. You should have received
# a copy of the GNU General Public License along with lc3vm. If
# not, see <https://www.gnu.org/licenses/>.

# ----------------------------------------------------------------------
# common.py
# ----------------------------------------------------------------------

import sys

# ----------------------------------------------------------------------
# Tracing and error logging
# ----------------------------------------------------------------------

# Trace output goes to stderr; stdout belongs to the program running
# on the machine.

class Mode:
    def __init__(self, stream=None):
        self.trace = False
        self.show_err = True
        self.stream = stream

    def set_trace(self):
        self.trace = True

    def clear_trace(self):
        self.trace = False

    def emit(self, xs):
        stream = self.stream if self.stream is not None else sys.stderr
        print(xs, file=stream, flush=True)

    def devlog(self, xs):
        if self.trace:
            self.emit(xs)

    def errlog(self, xs):
        if self.show_err:
            self.emit(xs)

mode = Mode()

# ----------------------------------------------------------------------
# Logging error message
# ----------------------------------------------------------------------

def indicate_error(xs):
    mode.emit(f"\033[91m\033[1m{xs}\033[0m") # ANSI escape codes for red and bold

# ----------------------------------------------------------------------
# Machine faults
# ----------------------------------------------------------------------

class IllegalInstruction(Exception):
    """Raised when the machine fetches one of the reserved opcodes.

    The fault is not recoverable: the emulator stops and the exception
    propagates to whoever is driving the execution loop.
    """

    def __init__(self, opcode, instr, address):
        self.opcode = opcode
        self.instr = instr
        self.address = address
        super().__init__(
            f"illegal opcode {opcode} (instruction x{instr:04X}) at x{address:04X}")
