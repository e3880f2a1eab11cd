# loader.py

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

# --------------------------------------------------------------------------
# loader.py: read program images into memory
# --------------------------------------------------------------------------

# An image file is a sequence of big endian 16-bit words. The first
# word is the origin, the address where the remaining words are
# placed. There is no header, length or checksum.

import struct

import common
import architecture as arch
import arithmetic as arith

# --------------------------------------------------------------------------
# Image format
# --------------------------------------------------------------------------

def parse_image(data):
    """Split image bytes into (origin, words).

    At most mem_size - origin words are taken, so an image never wraps
    past the top of memory. A trailing odd byte is ignored. If there
    are fewer than two bytes the origin is None and there are no words.
    """
    if len(data) < 2:
        return None, []
    (origin,) = struct.unpack_from(">H", data, 0)
    n = min((len(data) - 2) // 2, arch.mem_size - origin)
    words = list(struct.unpack_from(f">{n}H", data, 2))
    return origin, words

def image_bytes(es, origin, n):
    """Serialize n words of memory starting at origin as an image."""
    words = [es.ab.read_mem16(es, arith.limit16(origin + i)) for i in range(n)]
    return struct.pack(f">{n + 1}H", origin, *words)

# --------------------------------------------------------------------------
# Loading into memory
# --------------------------------------------------------------------------

def read_image_file(es, f):
    origin, words = parse_image(f.read())
    if origin is None:
        common.mode.devlog("read_image_file: no origin, nothing loaded")
        return None, 0
    for i, w in enumerate(words):
        es.ab.write_mem16(es, origin + i, w)
    common.mode.devlog(f"read_image_file origin=x{arith.word_to_hex4(origin)}"
                       f" words={len(words)}")
    es.ab.write_scb(es, es.ab.SCB_STATUS, es.ab.SCB_READY)
    return origin, len(words)

def read_image(es, image_path):
    common.mode.devlog(f"read_image {image_path}")
    try:
        with open(image_path, "rb") as f:
            read_image_file(es, f)
    except OSError as e:
        common.mode.errlog(f"cannot read {image_path}: {e.strerror}")
        return False
    return True
