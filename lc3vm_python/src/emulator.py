# emulator.py

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

# -------------------------------------------------------------------------
# emulator.py defines the machine language semantics
# -------------------------------------------------------------------------

import sys

import common
import architecture as arch
import arithmetic as arith
import arrbuf
import console

# ------------------------------------------------------------------------
# Emulator state
# ------------------------------------------------------------------------

class EmulatorState:
    def __init__(self, source=None, sink=None, arrbuf_module=arrbuf):
        common.mode.devlog("new EmulatorState")
        self.ab = arrbuf_module
        self.source = console.TerminalSource() if source is None else source
        self.sink = console.TerminalSink() if sink is None else sink

        self.vec16 = self.ab.new_vec16()
        self.vec32 = self.ab.new_vec32()
        self.address_mask = arith.word16mask

        self.em_instr_slice_size = 500
        self.slice_unlimited = True

        self.n_registers = 0
        self.register = []
        self.regfile = []

        self.instr_code = 0
        self.ir_op = 0
        self.ir_d = 0
        self.ir_a = 0
        self.ir_b = 0
        self.ir_imm_flag = 0
        self.ir_long_flag = 0
        self.ir_trapvect = 0

        clear_access_logging(self)

        for i in range(arch.n_gen_registers):
            self.regfile.append(GenRegister(self, arch.register_names[i]))
        self.pc = GenRegister(self, arch.register_names[arch.R_PC])
        self.cond = GenRegister(self, arch.register_names[arch.R_COND])

        self.ab.reset_scb(self)

class GenRegister:
    def __init__(self, es, reg_name):
        self.es = es
        self.reg_number = es.n_registers
        es.n_registers += 1
        self.reg_name = reg_name
        es.register.append(self)

    def get(self):
        return self.es.ab.read_reg16(self.es, self.reg_number)

    def put(self, x):
        x = arith.limit16(x)
        self.es.reg_stored[self.reg_number] = x
        self.es.ab.write_reg16(self.es, self.reg_number, x)

def reset_registers(es):
    common.mode.devlog(f"Resetting {es.n_registers} registers")
    for i in range(es.n_registers):
        es.register[i].put(0)

def clear_access_logging(es):
    es.reg_stored = {}
    es.mem_fetch_instr_log = set()
    es.mem_fetch_data_log = set()
    es.mem_store_log = set()

def limit_address(es, x):
    return x & es.address_mask

# -------------------------------------------------------------------------
# Condition flags
# -------------------------------------------------------------------------

def update_flags(es, r):
    x = es.register[r].get()
    if x == 0:
        es.cond.put(arch.FL_ZRO)
    elif arith.is_negative(x):
        es.cond.put(arch.FL_NEG)
    else:
        es.cond.put(arch.FL_POS)

# -------------------------------------------------------------------------
# Memory and memory mapped devices
# -------------------------------------------------------------------------

# Reading the keyboard status register polls the character source
# without blocking; every other location is plain storage.

def poll_keyboard(es):
    if es.source.key_ready():
        es.ab.write_mem16(es, arch.MR_KBSR, arch.kbsr_ready)
        es.ab.write_mem16(es, arch.MR_KBDR, arith.limit16(es.source.getc()))
    else:
        es.ab.write_mem16(es, arch.MR_KBSR, 0)

def mem_read(es, a):
    a = limit_address(es, a)
    if a == arch.MR_KBSR:
        poll_keyboard(es)
    es.mem_fetch_data_log.add(a)
    return es.ab.read_mem16(es, a)

def mem_write(es, a, x):
    a = limit_address(es, a)
    es.mem_store_log.add(a)
    es.ab.write_mem16(es, a, x)

def mem_fetch_instr(es, a):
    es.mem_fetch_instr_log.add(a)
    return es.ab.read_mem16(es, a)

# -------------------------------------------------------------------------
# Initialize machine state
# -------------------------------------------------------------------------

def proc_reset(es):
    common.mode.devlog("reset the processor")
    es.ab.reset_scb(es)
    reset_registers(es)
    es.ab.clear_mem(es)
    clear_access_logging(es)

def boot(es):
    common.mode.devlog("em.boot")
    es.pc.put(arch.pc_start)
    es.cond.put(arch.FL_ZRO)
    es.ab.write_scb(es, es.ab.SCB_CUR_INSTR_ADDR, arch.pc_start)
    es.ab.clear_instr_count(es)
    clear_access_logging(es)
    es.ab.write_scb(es, es.ab.SCB_STATUS, es.ab.SCB_RUNNING)

# -------------------------------------------------------------------------
# Controlling instruction execution
# -------------------------------------------------------------------------

def cur_instr_addr(es):
    return es.ab.read_scb(es, es.ab.SCB_CUR_INSTR_ADDR)

def is_running(es):
    return es.ab.read_scb(es, es.ab.SCB_STATUS) == es.ab.SCB_RUNNING

def execute(es):
    boot(es)
    return instruction_looper(es)

def instruction_looper(es):
    icount = 0
    while is_running(es):
        if not es.slice_unlimited and icount >= es.em_instr_slice_size:
            common.mode.devlog(f"instruction slice of {icount} exhausted")
            break
        execute_instruction(es)
        icount += 1
    common.mode.devlog(f"discontinue instruction looper, status={es.ab.show_scb_status(es)}")
    return es.ab.read_scb(es, es.ab.SCB_STATUS)

# -------------------------------------------------------------------------
# Fetch, decode and dispatch
# -------------------------------------------------------------------------

def decode(es):
    x = es.instr_code
    es.ir_op = arch.get_field(x, 15, 12)
    es.ir_d = arch.get_field(x, 11, 9)
    es.ir_a = arch.get_field(x, 8, 6)
    es.ir_b = arch.get_field(x, 2, 0)
    es.ir_imm_flag = arch.get_bit_in_word_le(x, 5)
    es.ir_long_flag = arch.get_bit_in_word_le(x, 11)
    es.ir_trapvect = arch.get_field(x, 7, 0)

def execute_instruction(es):
    executed_instr_addr = es.pc.get()
    es.ab.write_scb(es, es.ab.SCB_CUR_INSTR_ADDR, executed_instr_addr)

    es.instr_code = mem_fetch_instr(es, executed_instr_addr)
    es.pc.put(arith.incr_address(es, executed_instr_addr, 1))

    decode(es)
    if common.mode.trace:
        common.mode.devlog(f"x{arith.word_to_hex4(executed_instr_addr)}"
                           f" ir={arith.word_to_hex4(es.instr_code)}"
                           f" {arch.mnemonic[es.ir_op]}")

    dispatch_opcode[es.ir_op](es)
    es.ab.incr_instr_count(es)

# -------------------------------------------------------------------------
# Effective addresses
# -------------------------------------------------------------------------

# PC relative addresses use the PC after it has been incremented past
# the current instruction

def pc_offset(es, k):
    return arith.bin_add(es.pc.get(), arith.sign_extend(es.instr_code, k))

def ea_pc9(es):
    return pc_offset(es, 9)

def ea_base6(es):
    base = es.regfile[es.ir_a].get()
    return arith.bin_add(base, arith.sign_extend(es.instr_code, 6))

def ea_indirect9(es):
    return mem_read(es, ea_pc9(es))

# -------------------------------------------------------------------------
# Instruction pattern functions
# -------------------------------------------------------------------------

# dr := f(sr1, sr2 or imm5), set flags

def rri(f):
    def inner(es):
        a = es.regfile[es.ir_a].get()
        if es.ir_imm_flag:
            b = arith.sign_extend(es.instr_code, 5)
        else:
            b = es.regfile[es.ir_b].get()
        es.regfile[es.ir_d].put(f(a, b))
        update_flags(es, es.ir_d)
    return inner

# dr := f(sr), set flags

def rr(f):
    def inner(es):
        a = es.regfile[es.ir_a].get()
        es.regfile[es.ir_d].put(f(a))
        update_flags(es, es.ir_d)
    return inner

# dr := mem[ea], set flags

def load(ea):
    def inner(es):
        es.regfile[es.ir_d].put(mem_read(es, ea(es)))
        update_flags(es, es.ir_d)
    return inner

# mem[ea] := sr

def store(ea):
    def inner(es):
        mem_write(es, ea(es), es.regfile[es.ir_d].get())
    return inner

# -------------------------------------------------------------------------
# Instructions
# -------------------------------------------------------------------------

def op_br(es):
    if es.ir_d & es.cond.get():
        es.pc.put(pc_offset(es, 9))

def op_jsr(es):
    es.regfile[arch.R_R7].put(es.pc.get())
    if es.ir_long_flag:
        es.pc.put(pc_offset(es, 11))
    else:
        es.pc.put(es.regfile[es.ir_a].get())

def op_jmp(es):
    es.pc.put(es.regfile[es.ir_a].get())

def op_lea(es):
    es.regfile[es.ir_d].put(ea_pc9(es))
    update_flags(es, es.ir_d)

def op_illegal(es):
    common.mode.devlog(f"illegal opcode {es.ir_op}")
    es.ab.write_scb(es, es.ab.SCB_STATUS, es.ab.SCB_FAULT)
    raise common.IllegalInstruction(es.ir_op, es.instr_code, cur_instr_addr(es))

def op_trap(es):
    code = es.ir_trapvect
    common.mode.devlog(f"trap code=x{code:02x} {arch.trap_names.get(code, '?')}")
    handler = dispatch_trap.get(code)
    if handler is None:
        common.mode.errlog(f"trap with unbound code = x{code:02x}"
                           f" at x{arith.word_to_hex4(cur_instr_addr(es))}")
        return
    handler(es)

dispatch_opcode = [
    op_br,                        # 0
    rri(arith.op_add),            # 1 add
    load(ea_pc9),                 # 2 ld
    store(ea_pc9),                # 3 st
    op_jsr,                       # 4
    rri(arith.op_and),            # 5 and
    load(ea_base6),               # 6 ldr
    store(ea_base6),              # 7 str
    op_illegal,                   # 8 rti
    rr(arith.op_not),             # 9 not
    load(ea_indirect9),           # a ldi
    store(ea_indirect9),          # b sti
    op_jmp,                       # c
    op_illegal,                   # d res
    op_lea,                       # e
    op_trap                       # f
]

# -------------------------------------------------------------------------
# Trap routines
# -------------------------------------------------------------------------

# Words of a zero terminated string starting at a. The scan stops at
# the top of memory if no terminator is found.

def string_words(es, a):
    while a < arch.mem_size:
        w = es.ab.read_mem16(es, a)
        if w == 0:
            return
        yield w
        a += 1

def trap_getc(es):
    es.regfile[arch.R_R0].put(es.source.getc())

def trap_out(es):
    es.sink.putc(arith.low_byte(es.regfile[arch.R_R0].get()))
    es.sink.flush()

def trap_puts(es):
    for w in string_words(es, es.regfile[arch.R_R0].get()):
        es.sink.putc(arith.low_byte(w))
    es.sink.flush()

def trap_in(es):
    es.sink.puts(arch.in_prompt)
    es.sink.flush()
    c = es.source.getc()
    if c != arch.EOF_WORD:
        es.sink.putc(c)
    es.sink.flush()
    es.regfile[arch.R_R0].put(c)
    update_flags(es, arch.R_R0)

def trap_putsp(es):
    for w in string_words(es, es.regfile[arch.R_R0].get()):
        es.sink.putc(arith.low_byte(w))
        hi = arith.high_byte(w)
        if hi:
            es.sink.putc(hi)
    es.sink.flush()

def trap_halt(es):
    common.mode.devlog("Trap: halt")
    es.sink.puts(arch.halt_message)
    es.sink.flush()
    es.ab.write_scb(es, es.ab.SCB_STATUS, es.ab.SCB_HALTED)

dispatch_trap = {
    arch.TRAP_GETC: trap_getc,
    arch.TRAP_OUT: trap_out,
    arch.TRAP_PUTS: trap_puts,
    arch.TRAP_IN: trap_in,
    arch.TRAP_PUTSP: trap_putsp,
    arch.TRAP_HALT: trap_halt
}

# -------------------------------------------------------------------------
# Debugging/Output functions
# -------------------------------------------------------------------------

def dump_registers(es, file=None):
    file = sys.stdout if file is None else file
    print("\n--- Registers ---", file=file)
    for reg in es.regfile:
        x = reg.get()
        print(f"{reg.reg_name}: {arith.word_to_hex4(x)} ({arith.word_to_int(x)})", file=file)
    print(f"PC: {arith.word_to_hex4(es.pc.get())}", file=file)
    print(f"COND: {arch.show_cond(es.cond.get())}", file=file)
    print(f"Status: {es.ab.show_scb_status(es)}"
          f"  Instructions executed: {es.ab.read_instr_count(es)}", file=file)
    print("-----------------", file=file)

# Rows of up to words_per_line words covering first..last inclusive

def memory_rows(es, first, last):
    for a in range(first, last + 1, arch.words_per_line):
        row = range(a, min(a + arch.words_per_line, last + 1))
        words = " ".join(arith.word_to_hex4(es.ab.read_mem16(es, b)) for b in row)
        yield f"MEM[{arith.word_to_hex4(a)}]: {words}"

def dump_memory(es, first=0, last=arch.mem_size - 1, file=None):
    file = sys.stdout if file is None else file
    print(f"\n--- Memory x{arith.word_to_hex4(first)}..x{arith.word_to_hex4(last)} ---", file=file)
    for row in memory_rows(es, first, last):
        print(row, file=file)
    print("-----------------", file=file)

def dump_modified_registers_summary(es, file=None):
    file = sys.stdout if file is None else file
    if not es.reg_stored:
        print("\n--- No Registers Modified ---", file=file)
        return
    print("\n--- Modified Registers Summary ---", file=file)
    for reg_num in sorted(es.reg_stored.keys()):
        reg = es.register[reg_num]
        reg_value = es.reg_stored[reg_num]
        print(f"{reg.reg_name}: {arith.word_to_hex4(reg_value)} ({reg_value})", file=file)
    print("--------------------------------", file=file)

def group_contiguous(addresses):
    groups = []
    for a in sorted(addresses):
        if groups and a == groups[-1][-1] + 1:
            groups[-1].append(a)
        else:
            groups.append([a])
    return groups

def dump_accessed_memory_summary(es, file=None):
    file = sys.stdout if file is None else file
    accessed = es.mem_fetch_instr_log | es.mem_fetch_data_log | es.mem_store_log
    if not accessed:
        print("\n--- No Memory Accessed ---", file=file)
        return

    print("\n--- Accessed Memory Summary ---", file=file)
    for group in group_contiguous(accessed):
        print(f"Addresses {arith.word_to_hex4(group[0])} to {arith.word_to_hex4(group[-1])}:", file=file)
        for row in memory_rows(es, group[0], group[-1]):
            print("  " + row, file=file)
