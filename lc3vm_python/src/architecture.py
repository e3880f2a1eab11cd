# architecture.py

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

# --------------------------------------------------------------------
# architecture.py defines global constants and tables specifying
# registers, opcodes, mnemonics, condition flags, trap vectors and
# device registers
# --------------------------------------------------------------------

# --------------------------------------------------------------------
# Bit indexing
# --------------------------------------------------------------------

# Bits are indexed Little End (LE): the least significant (rightmost)
# bit has index 0 and the most significant bit of a 16-bit word has
# index 15. Instruction fields are written [hi:lo] using this
# convention, so the opcode is bits [15:12].

# Get bit i from word w

def get_bit_in_word_le(w, i):
    return (w >> i) & 0x0001

# Extract the field [hi:lo] of word w

def get_field(w, hi, lo):
    return (w >> lo) & ((1 << (hi - lo + 1)) - 1)

# --------------------------------------------------------------------
# Architecture constants
# --------------------------------------------------------------------

mem_size = 65536  # number of memory locations = 2^16
words_per_line = 8

# Programs are entered at this address

pc_start = 0x3000

# --------------------------------------------------------------------
# Registers
# --------------------------------------------------------------------

# The register file is indexed R0..R7, followed by the program counter
# and the condition register

R_R0 = 0
R_R1 = 1
R_R2 = 2
R_R3 = 3
R_R4 = 4
R_R5 = 5
R_R6 = 6
R_R7 = 7
R_PC = 8
R_COND = 9
R_COUNT = 10

n_gen_registers = 8

register_names = [
    "R0", "R1", "R2", "R3", "R4", "R5", "R6", "R7",
    "PC", "COND"
]

# --------------------------------------------------------------------
# Condition flags
# --------------------------------------------------------------------

# COND always holds exactly one of these. The BR instruction's nzp
# field [11:9] uses the same bit positions.

FL_POS = 1 << 0  # P
FL_ZRO = 1 << 1  # Z
FL_NEG = 1 << 2  # N

def show_cond(c):
    if c == FL_NEG:
        return "N"
    elif c == FL_ZRO:
        return "Z"
    elif c == FL_POS:
        return "P"
    else:
        return "?"

# --------------------------------------------------------------------
# Opcodes
# --------------------------------------------------------------------

OP_BR = 0    # branch
OP_ADD = 1   # add
OP_LD = 2    # load
OP_ST = 3    # store
OP_JSR = 4   # jump register
OP_AND = 5   # bitwise and
OP_LDR = 6   # load register
OP_STR = 7   # store register
OP_RTI = 8   # unused
OP_NOT = 9   # bitwise not
OP_LDI = 10  # load indirect
OP_STI = 11  # store indirect
OP_JMP = 12  # jump
OP_RES = 13  # reserved (unused)
OP_LEA = 14  # load effective address
OP_TRAP = 15 # execute trap

# Opcodes that fault when executed

illegal_opcodes = (OP_RTI, OP_RES)

# This array is indexed by an opcode to give the corresponding
# mnemonic

mnemonic = [
    "br", "add", "ld", "st",      # 0-3
    "jsr", "and", "ldr", "str",   # 4-7
    "rti", "not", "ldi", "sti",   # 8-11
    "jmp", "res", "lea", "trap"   # 12-15
]

# --------------------------------------------------------------------
# Trap vectors
# --------------------------------------------------------------------

TRAP_GETC = 0x20   # get character from keyboard, not echoed
TRAP_OUT = 0x21    # output a character
TRAP_PUTS = 0x22   # output a word string
TRAP_IN = 0x23     # get character from keyboard, echoed
TRAP_PUTSP = 0x24  # output a byte string
TRAP_HALT = 0x25   # halt the program

trap_names = {
    TRAP_GETC: "getc",
    TRAP_OUT: "out",
    TRAP_PUTS: "puts",
    TRAP_IN: "in",
    TRAP_PUTSP: "putsp",
    TRAP_HALT: "halt"
}

in_prompt = "Enter a character: "
halt_message = "HALT\n"

# --------------------------------------------------------------------
# Memory mapped device registers
# --------------------------------------------------------------------

MR_KBSR = 0xFE00  # keyboard status
MR_KBDR = 0xFE02  # keyboard data

kbsr_ready = 1 << 15

# A character source at end of input yields C's EOF stored in a word

EOF_WORD = 0xFFFF
