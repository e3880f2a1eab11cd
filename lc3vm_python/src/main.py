# main.py

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

import sys
import argparse
import contextlib

import common
import architecture as arch
import emulator as em
import loader
import console

EXIT_OK = 0
EXIT_LOAD_FAILED = 1
EXIT_USAGE = 2
EXIT_ILLEGAL_INSTRUCTION = 3
EXIT_INTERRUPTED = 130

def address(text):
    try:
        a = int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an address: {text}")
    if not 0 <= a < arch.mem_size:
        raise argparse.ArgumentTypeError(f"address out of range: {text}")
    return a

def build_parser():
    parser = argparse.ArgumentParser(prog="lc3vm", description="LC-3 virtual machine")
    parser.add_argument("images", nargs="*", metavar="image-file",
                        help="Program image to load (big endian, origin first)")
    parser.add_argument("--trace", action="store_true",
                        help="Trace every instruction on stderr")
    parser.add_argument("--limit", type=int, default=None, metavar="N",
                        help="Stop after N instructions")
    parser.add_argument("--reg-dump", action="store_true",
                        help="Dump registers after execution")
    parser.add_argument("--mem-dump", nargs=2, type=address, metavar=("FIRST", "LAST"),
                        help="Dump memory from FIRST to LAST inclusive after execution")
    parser.add_argument("--summary", action="store_true",
                        help="Show modified registers and accessed memory after execution")
    return parser

def load_images(es, paths):
    for path in paths:
        if not loader.read_image(es, path):
            print(f"failed to load image: {path}")
            return False
    return True

def run_images(args, source=None, sink=None):
    es = em.EmulatorState(source, sink)
    if not load_images(es, args.images):
        return EXIT_LOAD_FAILED

    if args.limit is not None:
        es.slice_unlimited = False
        es.em_instr_slice_size = args.limit

    # Only a real terminal is switched into cbreak mode
    terminal = console.cbreak_terminal() if source is None else contextlib.nullcontext()
    try:
        with terminal:
            em.execute(es)
    except common.IllegalInstruction as e:
        common.indicate_error(f"lc3vm: {e}")
        return EXIT_ILLEGAL_INSTRUCTION
    except KeyboardInterrupt:
        print()
        return EXIT_INTERRUPTED

    if em.is_running(es):
        print(f"Stopped after {es.ab.read_instr_count(es)} instructions (limit reached).")

    if args.summary:
        em.dump_modified_registers_summary(es)
        em.dump_accessed_memory_summary(es)
    if args.reg_dump:
        em.dump_registers(es)
    if args.mem_dump:
        first, last = args.mem_dump
        em.dump_memory(es, first, last)
    return EXIT_OK

def main(argv=None, source=None, sink=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.images:
        parser.print_usage(sys.stdout)
        return EXIT_USAGE
    if args.trace:
        common.mode.set_trace()
    try:
        return run_images(args, source, sink)
    finally:
        common.mode.clear_trace()

if __name__ == "__main__":
    sys.exit(main())
