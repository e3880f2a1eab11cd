# arithmetic.py

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

# ------------------------------------------------------------------------
# arithmetic.py defines arithmetic for the architecture using
# Python arithmetic. This includes word representation, data
# conversions, bit manipulation, and the operations required by the
# instruction set architecture.
# ------------------------------------------------------------------------

import architecture as arch

word16mask = 0x0000FFFF
word32mask = 0xFFFFFFFF

# ------------------------------------------------------------------------
# Ensuring validity of words
# ------------------------------------------------------------------------

# All operations that produce a word should produce a valid word,
# which is represented as a nonnegative integer x with 0 <= x < 2^16.
# Addresses are also 16 bits, and an address that exceeds this range
# wraps around.

def limit16(x):
    return x & word16mask

def limit32(x):
    return x & word32mask

# ------------------------------------------------------------------------
# Words, binary numbers, and two's complement integers
# ------------------------------------------------------------------------

const8000 = 32768  # 2^15
const10000 = 65536  # 2^16

def word_to_int(w):
    return w if w < const8000 else w - const10000

def int_to_word(x):
    return x % const10000

def is_negative(w):
    return arch.get_bit_in_word_le(w, 15) == 1

# ------------------------------------------------------------------------
# Sign extension
# ------------------------------------------------------------------------

# Replicate bit (k-1) of the k-bit field x into bits 15..k

def sign_extend(x, k):
    x = x & ((1 << k) - 1)
    if arch.get_bit_in_word_le(x, k - 1):
        x |= (0xFFFF << k) & word16mask
    return x

# ------------------------------------------------------------------------
# Hexadecimal representation
# ------------------------------------------------------------------------

hex_digit = "0123456789abcdef"

def split_word(x):
    y = x
    s = y & 0x000F
    y = y >> 4
    r = y & 0x000F
    y = y >> 4
    q = y & 0x000F
    y = y >> 4
    p = y & 0x000F
    return p, q, r, s

def word_to_hex4(x):
    p, q, r, s = split_word(limit16(x))
    result = hex_digit[p] + hex_digit[q] + hex_digit[r] + hex_digit[s]
    return result

# ------------------------------------------------------------------------
# Operations for the instructions
# ------------------------------------------------------------------------

def word_invert(x):
    return limit16(~x)

def bin_add(x, y):
    r = x + y
    return r & 0x0000FFFF

def incr_address(es, x, i):
    r = (x + i) & es.address_mask
    return r

def op_add(a, b):
    return bin_add(a, b)

def op_and(a, b):
    return a & b

def op_not(a):
    return word_invert(a)

# ------------------------------------------------------------------------
# Byte order
# ------------------------------------------------------------------------

# Packed strings hold the first character in the low byte

def high_byte(w):
    return (w >> 8) & 0x00FF

def low_byte(w):
    return w & 0x00FF
