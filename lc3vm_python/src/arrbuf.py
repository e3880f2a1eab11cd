# arrbuf.py

# Copyright (C) 2025 The lc3vm authors. License: GNU GPL
# Version 3. See lc3vm/README and LICENSE

# This file is part of lc3vm. lc3vm is free software:
# you can redistribute it and/or modify it under the terms
# of the GNU General Public License as published by the Free
# Software Foundation, Version 3 of the License. lc3vm is
# distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See
# the GNU General Public License for more details. You
# should have received a copy of the GNU General Public
# License along with lc3vm. If not, see
# <https://www.gnu.org/licenses/>.

# arrbuf.py defines the system state vector: the register
# file and memory as one array of 16-bit words, and the
# system control block as an array of 32-bit words.

import arithmetic as arith
import architecture as arch

# -------------------------------------------------------------
# Memory map of the emulator state array
# -------------------------------------------------------------

SCB_SIZE = 32  # emulator variables, 32-bit elements
REG_SIZE = 16  # register file, 16-bit elements
MEM_SIZE = arch.mem_size  # each location is 16 bits

STATE_VEC_SIZE16 = REG_SIZE + MEM_SIZE

# Offsets of state vector sections

REG_OFFSET16 = 0
MEM_OFFSET16 = REG_OFFSET16 + REG_SIZE

SCB_OFFSET32 = 0

def new_vec16():
    return [0] * STATE_VEC_SIZE16

def new_vec32():
    return [0] * SCB_SIZE

# -------------------------------------------------------------
# General access functions
# -------------------------------------------------------------

def read16(es, a, k):
    return es.vec16[a + k]

def write16(es, a, k, x):
    es.vec16[a + k] = arith.limit16(x)

def read32(es, a, k):
    return es.vec32[a + k]

def write32(es, a, k, x):
    es.vec32[a + k] = arith.limit32(x)

# -------------------------------------------------------------
# System control block
# -------------------------------------------------------------

SCB_N_INSTR_EXECUTED = 0  # count instr executed
SCB_STATUS = 1  # status of system
SCB_CUR_INSTR_ADDR = 2  # addr current instr

# SCB access functions

def write_scb(es, elt, x):
    write32(es, elt, SCB_OFFSET32, x)

def read_scb(es, elt):
    return read32(es, elt, SCB_OFFSET32)

# SCB_status codes specify the condition of the processor

SCB_RESET = 0  # after init or Reset
SCB_READY = 1  # after loading images
SCB_RUNNING = 2  # executing instructions
SCB_HALTED = 3  # after trap x25
SCB_FAULT = 4  # after an illegal instruction

# Clear the SCB, putting the system into initial state

def reset_scb(es):
    clear_instr_count(es)
    write_scb(es, SCB_STATUS, SCB_RESET)
    write_scb(es, SCB_CUR_INSTR_ADDR, 0)

# Convert the numeric status to a descriptive string

def show_scb_status(es):
    status = read_scb(es, SCB_STATUS)
    if status == SCB_RESET:
        return "Reset"
    elif status == SCB_READY:
        return "Ready"
    elif status == SCB_RUNNING:
        return "Running"
    elif status == SCB_HALTED:
        return "Halted"
    elif status == SCB_FAULT:
        return "Fault"
    else:
        return ""

def write_instr_count(es, n):
    write32(es, SCB_N_INSTR_EXECUTED, SCB_OFFSET32, n)

def read_instr_count(es):
    return read32(es, SCB_N_INSTR_EXECUTED, SCB_OFFSET32)

def clear_instr_count(es):
    write_instr_count(es, 0)

def incr_instr_count(es):
    write_instr_count(es, read_instr_count(es) + 1)

# -------------------------------------------------------------
# Registers
# -------------------------------------------------------------

def read_reg16(es, r):
    return read16(es, r, REG_OFFSET16)

def write_reg16(es, r, x):
    write16(es, r, REG_OFFSET16, x)

# -------------------------------------------------------------
# Memory
# -------------------------------------------------------------

# Plain storage access; memory mapped devices are handled by
# the emulator on top of these

def read_mem16(es, a):
    return read16(es, a & arith.word16mask, MEM_OFFSET16)

def write_mem16(es, a, x):
    write16(es, a & arith.word16mask, MEM_OFFSET16, x)

def clear_mem(es):
    for a in range(MEM_SIZE):
        es.vec16[MEM_OFFSET16 + a] = 0
