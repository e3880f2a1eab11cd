# programs.py

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
# programs.py: instruction encoders and machine builders used by the
# tests
# ----------------------------------------------------------------------

import io
import struct

import architecture as arch
import emulator as em
import loader
import console

def br(nzp, off9):
    return (arch.OP_BR << 12) | (nzp << 9) | (off9 & 0x1FF)

def add_imm(dr, sr1, imm5):
    return (arch.OP_ADD << 12) | (dr << 9) | (sr1 << 6) | 0x20 | (imm5 & 0x1F)

def add_reg(dr, sr1, sr2):
    return (arch.OP_ADD << 12) | (dr << 9) | (sr1 << 6) | sr2

def and_imm(dr, sr1, imm5):
    return (arch.OP_AND << 12) | (dr << 9) | (sr1 << 6) | 0x20 | (imm5 & 0x1F)

def and_reg(dr, sr1, sr2):
    return (arch.OP_AND << 12) | (dr << 9) | (sr1 << 6) | sr2

def not_(dr, sr):
    return (arch.OP_NOT << 12) | (dr << 9) | (sr << 6) | 0x3F

def ld(dr, off9):
    return (arch.OP_LD << 12) | (dr << 9) | (off9 & 0x1FF)

def st(sr, off9):
    return (arch.OP_ST << 12) | (sr << 9) | (off9 & 0x1FF)

def ldi(dr, off9):
    return (arch.OP_LDI << 12) | (dr << 9) | (off9 & 0x1FF)

def sti(sr, off9):
    return (arch.OP_STI << 12) | (sr << 9) | (off9 & 0x1FF)

def ldr(dr, base, off6):
    return (arch.OP_LDR << 12) | (dr << 9) | (base << 6) | (off6 & 0x3F)

def str_(sr, base, off6):
    return (arch.OP_STR << 12) | (sr << 9) | (base << 6) | (off6 & 0x3F)

def lea(dr, off9):
    return (arch.OP_LEA << 12) | (dr << 9) | (off9 & 0x1FF)

def jsr(off11):
    return (arch.OP_JSR << 12) | 0x0800 | (off11 & 0x7FF)

def jsrr(base):
    return (arch.OP_JSR << 12) | (base << 6)

def jmp(base):
    return (arch.OP_JMP << 12) | (base << 6)

def ret():
    return jmp(arch.R_R7)

def trap(vect):
    return (arch.OP_TRAP << 12) | (vect & 0xFF)

HALT = trap(arch.TRAP_HALT)

def image(words, origin=arch.pc_start):
    return struct.pack(f">{len(words) + 1}H", origin, *words)

def machine(words, origin=arch.pc_start, text=""):
    es = em.EmulatorState(console.ScriptedSource(text), console.BufferSink())
    loader.read_image_file(es, io.BytesIO(image(words, origin)))
    return es

def run(words, origin=arch.pc_start, text=""):
    es = machine(words, origin, text)
    em.execute(es)
    return es
