# console.py

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
# console.py: character sources and sinks used by the keyboard
# device registers and the trap routines
# ----------------------------------------------------------------------

# A source provides
#   key_ready()  True if a character can be read without blocking
#   getc()       the next character code, blocking; EOF_WORD at end
# A sink provides
#   putc(b)      write one byte
#   puts(xs)     write a string
#   flush()

import os
import sys
import select
import contextlib
from collections import deque

import architecture as arch

# ----------------------------------------------------------------------
# Terminal
# ----------------------------------------------------------------------

class TerminalSource:
    def __init__(self, fd=None):
        self.fd = fd

    def fileno(self):
        return sys.stdin.fileno() if self.fd is None else self.fd

    def key_ready(self):
        rlist, _, _ = select.select([self.fileno()], [], [], 0)
        return bool(rlist)

    def getc(self):
        # os.read bypasses the buffering of sys.stdin, so select and
        # read agree about what is pending
        b = os.read(self.fileno(), 1)
        return b[0] if b else arch.EOF_WORD

class TerminalSink:
    def __init__(self, stream=None):
        self.stream = stream

    def write(self, data):
        stream = sys.stdout.buffer if self.stream is None else self.stream
        stream.write(data)

    def putc(self, b):
        self.write(bytes([b & 0xFF]))

    def puts(self, xs):
        self.write(xs.encode("latin-1", errors="replace"))

    def flush(self):
        stream = sys.stdout.buffer if self.stream is None else self.stream
        stream.flush()

@contextlib.contextmanager
def cbreak_terminal(stream=None):
    """Put a terminal into cbreak mode for the duration of the block.

    Keys are delivered one at a time without echo, which is what the
    keyboard registers and the GETC trap expect. When the stream is not
    a tty (a pipe or a file) nothing is changed.
    """
    stream = sys.stdin if stream is None else stream
    if not stream.isatty():
        yield
        return
    import termios
    import tty
    fd = stream.fileno()
    old_settings = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)

# ----------------------------------------------------------------------
# Scripted input and captured output
# ----------------------------------------------------------------------

class ScriptedSource:
    def __init__(self, text=""):
        self.pending = deque()
        self.feed(text)
        self.n_polls = 0

    def feed(self, text):
        if isinstance(text, str):
            text = text.encode("latin-1")
        self.pending.extend(text)

    def key_ready(self):
        self.n_polls += 1
        return len(self.pending) > 0

    def getc(self):
        if self.pending:
            return self.pending.popleft()
        return arch.EOF_WORD

class BufferSink:
    def __init__(self):
        self.data = bytearray()
        self.n_flushes = 0

    def putc(self, b):
        self.data.append(b & 0xFF)

    def puts(self, xs):
        self.data.extend(xs.encode("latin-1", errors="replace"))

    def flush(self):
        self.n_flushes += 1

    @property
    def text(self):
        return self.data.decode("latin-1")
