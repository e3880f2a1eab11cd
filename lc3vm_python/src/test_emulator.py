import pytest

import common
import architecture as arch
import arrbuf as ab
import emulator as em
import console
from emulator import EmulatorState
from programs import (br, add_imm, add_reg, and_imm, and_reg, not_, ld, st,
                      ldi, sti, ldr, str_, lea, jsr, jsrr, jmp, ret, HALT,
                      machine, run)

def reg(es, r):
    return es.register[r].get()

def mem(es, a):
    return es.ab.read_mem16(es, a)

def halted(es):
    return es.ab.read_scb(es, ab.SCB_STATUS) == ab.SCB_HALTED

def step(es, cond=None):
    em.boot(es)
    if cond is not None:
        es.cond.put(cond)
    em.execute_instruction(es)

def test_emulator_init():
    es = EmulatorState(console.ScriptedSource(), console.BufferSink())
    assert es is not None
    assert es.n_registers == arch.R_COUNT
    assert len(es.regfile) == 8
    assert all(reg(es, r) == 0 for r in range(arch.R_COUNT))
    assert es.ab.read_scb(es, ab.SCB_STATUS) == ab.SCB_RESET
    assert mem(es, 0x3000) == 0 and mem(es, 0xFFFF) == 0

def test_boot_sets_pc_and_cond():
    es = machine([HALT])
    assert es.ab.read_scb(es, ab.SCB_STATUS) == ab.SCB_READY
    em.boot(es)
    assert es.pc.get() == 0x3000
    assert es.cond.get() == arch.FL_ZRO
    assert em.is_running(es)

# -------------------------------------------------------------------------
# End to end
# -------------------------------------------------------------------------

def test_add_then_halt_image():
    es = run([0x1020, 0xF025])
    assert reg(es, arch.R_R0) == 0
    assert es.cond.get() == arch.FL_ZRO
    assert halted(es)
    assert es.sink.text == "HALT\n"
    assert es.ab.read_instr_count(es) == 2

def test_lea_str_uses_incremented_pc():
    # lea r0 points at the halt, which str then overwrites with zero
    es = run([lea(0, 1), str_(1, 0, 0), HALT, HALT])
    assert reg(es, arch.R_R0) == 0x3002
    assert mem(es, 0x3002) == 0
    assert halted(es)
    assert es.ab.read_instr_count(es) == 4

def test_lea_str_stores_register_value():
    es = run([add_imm(1, 1, 7), lea(0, 1), str_(1, 0, 0), 0, HALT])
    assert reg(es, arch.R_R0) == 0x3003
    assert mem(es, 0x3003) == 7
    assert es.cond.get() == arch.FL_POS

def test_no_fetch_after_halt():
    es = run([HALT, add_imm(0, 0, 1)])
    assert reg(es, arch.R_R0) == 0
    assert 0x3001 not in es.mem_fetch_instr_log
    assert es.pc.get() == 0x3001
    em.instruction_looper(es)
    assert es.ab.read_instr_count(es) == 1

def test_countdown_loop():
    # r0 := 5; loop: r1 += 2; r0 -= 1; brp loop
    es = run([add_imm(0, 0, 5), add_imm(1, 1, 2), add_imm(0, 0, -1), br(arch.FL_POS, -3), HALT])
    assert reg(es, arch.R_R1) == 10
    assert reg(es, arch.R_R0) == 0
    assert es.cond.get() == arch.FL_ZRO

# -------------------------------------------------------------------------
# Operate instructions and flags
# -------------------------------------------------------------------------

@pytest.mark.parametrize("imm5", range(-16, 16))
def test_add_immediate_from_zero_is_sign_extended(imm5):
    es = machine([add_imm(2, 0, imm5)])
    step(es)
    assert reg(es, arch.R_R2) == imm5 & 0xFFFF

@pytest.mark.parametrize("value, flag", [
    (0, arch.FL_ZRO),
    (1, arch.FL_POS),
    (0x7FFF, arch.FL_POS),
    (0x8000, arch.FL_NEG),
    (0xFFFF, arch.FL_NEG),
])
def test_update_flags(value, flag):
    es = machine([HALT])
    es.regfile[3].put(value)
    em.update_flags(es, 3)
    assert es.cond.get() == flag

def test_add_register_wraps():
    es = machine([add_reg(0, 1, 2)])
    es.regfile[1].put(0x7FFF)
    es.regfile[2].put(1)
    step(es)
    assert reg(es, arch.R_R0) == 0x8000
    assert es.cond.get() == arch.FL_NEG

def test_add_to_zero_from_negative():
    es = machine([add_imm(1, 1, 1)])
    es.regfile[1].put(0xFFFF)
    step(es)
    assert reg(es, arch.R_R1) == 0
    assert es.cond.get() == arch.FL_ZRO

def test_and_immediate_and_register():
    es = run([and_imm(1, 0, 0x0F), and_reg(2, 0, 3), HALT])
    assert es.cond.get() == arch.FL_ZRO
    es = machine([and_imm(1, 0, -2), and_reg(2, 0, 3)])
    es.regfile[0].put(0xF0F3)
    es.regfile[3].put(0x8001)
    em.boot(es)
    em.execute_instruction(es)
    assert reg(es, arch.R_R1) == 0xF0F2
    em.execute_instruction(es)
    assert reg(es, arch.R_R2) == 0x8001
    assert es.cond.get() == arch.FL_NEG

def test_not():
    es = machine([not_(4, 5)])
    es.regfile[5].put(0x00FF)
    step(es)
    assert reg(es, arch.R_R4) == 0xFF00
    assert es.cond.get() == arch.FL_NEG

def test_not_all_ones_is_zero():
    es = machine([not_(4, 4)])
    es.regfile[4].put(0xFFFF)
    step(es, arch.FL_POS)
    assert reg(es, arch.R_R4) == 0
    assert es.cond.get() == arch.FL_ZRO

# -------------------------------------------------------------------------
# Control instructions
# -------------------------------------------------------------------------

@pytest.mark.parametrize("mask", range(8))
@pytest.mark.parametrize("cond", [arch.FL_NEG, arch.FL_ZRO, arch.FL_POS])
def test_branch_gating(mask, cond):
    es = machine([br(mask, 5)])
    step(es, cond)
    expected = 0x3006 if mask & cond else 0x3001
    assert es.pc.get() == expected
    assert es.cond.get() == cond

def test_branch_backwards():
    es = machine([br(7, -1)])
    step(es)
    assert es.pc.get() == 0x3000

def test_jmp_and_ret():
    es = machine([jmp(3)])
    es.regfile[3].put(0x4000)
    step(es)
    assert es.pc.get() == 0x4000
    es = machine([ret()])
    es.regfile[7].put(0x1234)
    step(es)
    assert es.pc.get() == 0x1234

def test_jsr_long_offset():
    es = machine([jsr(0x10)])
    step(es)
    assert reg(es, arch.R_R7) == 0x3001
    assert es.pc.get() == 0x3011

def test_jsr_negative_offset():
    es = machine([jsr(-0x400)])
    step(es)
    assert es.pc.get() == (0x3001 - 0x400)

def test_jsrr():
    es = machine([jsrr(2)])
    es.regfile[2].put(0x5000)
    step(es)
    assert reg(es, arch.R_R7) == 0x3001
    assert es.pc.get() == 0x5000

def test_jsrr_through_r7_uses_saved_return_address():
    es = machine([jsrr(7)])
    es.regfile[7].put(0x5000)
    step(es)
    assert es.pc.get() == 0x3001

def test_subroutine_call_and_return():
    # jsr sub; halt; sub: add r0,r0,#3; ret
    es = run([jsr(1), HALT, add_imm(0, 0, 3), ret()])
    assert reg(es, arch.R_R0) == 3
    assert halted(es)

def test_jsr_does_not_set_flags():
    es = machine([jsr(1)])
    step(es, arch.FL_NEG)
    assert es.cond.get() == arch.FL_NEG

# -------------------------------------------------------------------------
# Memory instructions
# -------------------------------------------------------------------------

def test_ld_and_st():
    es = run([ld(1, 2), st(1, 2), HALT, 0x8123, 0])
    assert reg(es, arch.R_R1) == 0x8123
    assert mem(es, 0x3004) == 0x8123
    assert es.cond.get() == arch.FL_NEG

def test_ld_negative_offset():
    es = machine([ld(2, -2)], origin=0x3000)
    es.ab.write_mem16(es, 0x2FFF, 42)
    step(es)
    assert reg(es, arch.R_R2) == 42
    assert es.cond.get() == arch.FL_POS

def test_ldr_str():
    es = machine([ldr(1, 2, -1), str_(1, 2, 31)])
    es.regfile[2].put(0x4000)
    es.ab.write_mem16(es, 0x3FFF, 0x00AB)
    em.boot(es)
    em.execute_instruction(es)
    assert reg(es, arch.R_R1) == 0x00AB
    em.execute_instruction(es)
    assert mem(es, 0x401F) == 0x00AB

def test_ldr_address_wraps():
    es = machine([ldr(1, 2, -1)])
    es.ab.write_mem16(es, 0xFFFF, 9)
    step(es)
    assert reg(es, arch.R_R1) == 9

def test_ldi_double_indirection():
    es = machine([ldi(3, 2), HALT, HALT, 0x4000])
    es.ab.write_mem16(es, 0x4000, 0x0077)
    step(es)
    assert reg(es, arch.R_R3) == 0x0077
    assert es.cond.get() == arch.FL_POS

def test_sti():
    es = machine([sti(4, 0), 0x4100])
    es.regfile[4].put(0xBEEF)
    step(es)
    assert mem(es, 0x4100) == 0xBEEF

def test_lea_sets_flags():
    es = machine([lea(5, -0x100)])
    step(es)
    assert reg(es, arch.R_R5) == 0x2F01
    assert es.cond.get() == arch.FL_POS
    assert mem(es, 0x2F01) == 0

# -------------------------------------------------------------------------
# Faults and execution control
# -------------------------------------------------------------------------

@pytest.mark.parametrize("opcode", arch.illegal_opcodes)
def test_illegal_opcode_raises(opcode):
    instr = (opcode << 12) | 0x0123
    es = machine([add_imm(0, 0, 1), instr, HALT])
    with pytest.raises(common.IllegalInstruction) as excinfo:
        em.execute(es)
    assert excinfo.value.opcode == opcode
    assert excinfo.value.instr == instr
    assert excinfo.value.address == 0x3001
    assert reg(es, arch.R_R0) == 1
    assert es.ab.read_instr_count(es) == 1

def test_illegal_opcode_stops_the_machine():
    es = machine([arch.OP_RES << 12, add_imm(0, 0, 5), HALT])
    with pytest.raises(common.IllegalInstruction):
        em.execute(es)
    assert not em.is_running(es)
    assert es.ab.show_scb_status(es) == "Fault"
    assert em.instruction_looper(es) == ab.SCB_FAULT
    assert reg(es, arch.R_R0) == 0
    assert es.ab.read_instr_count(es) == 0

def test_instruction_slice():
    es = machine([br(7, -1)])
    es.slice_unlimited = False
    es.em_instr_slice_size = 10
    status = em.execute(es)
    assert status == ab.SCB_RUNNING
    assert es.ab.read_instr_count(es) == 10
    em.instruction_looper(es)
    assert es.ab.read_instr_count(es) == 20

def test_proc_reset():
    es = run([add_imm(0, 0, 3), HALT])
    em.proc_reset(es)
    assert reg(es, arch.R_R0) == 0
    assert mem(es, 0x3000) == 0
    assert es.ab.read_scb(es, ab.SCB_STATUS) == ab.SCB_RESET
    assert es.ab.read_instr_count(es) == 0

# -------------------------------------------------------------------------
# Keyboard device registers
# -------------------------------------------------------------------------

def test_kbsr_poll_with_key():
    es = machine([HALT], text="a")
    assert em.mem_read(es, arch.MR_KBSR) == 0x8000
    assert em.mem_read(es, arch.MR_KBDR) == ord("a")
    assert em.mem_read(es, arch.MR_KBSR) == 0
    assert em.mem_read(es, arch.MR_KBDR) == ord("a")

def test_kbsr_poll_without_key_does_not_read():
    es = machine([HALT])
    assert em.mem_read(es, arch.MR_KBSR) == 0
    assert es.source.n_polls == 1
    assert em.mem_read(es, arch.MR_KBDR) == 0

def test_only_kbsr_polls():
    es = machine([HALT], text="a")
    em.mem_read(es, arch.MR_KBDR)
    em.mem_read(es, 0x3000)
    em.mem_write(es, arch.MR_KBSR, 0x1234)
    assert es.source.n_polls == 0
    assert mem(es, arch.MR_KBSR) == 0x1234

def test_keyboard_poll_loop_program():
    words = [
        ldi(1, 5),                  # x3000 poll kbsr
        br(arch.FL_ZRO | arch.FL_POS, -2),
        ldi(0, 4),                  # x3002 read kbdr
        0xF021,                     # out
        HALT,
        0,
        arch.MR_KBSR,
        arch.MR_KBDR,
    ]
    es = run(words, text="z")
    assert es.sink.text == "zHALT\n"
    assert reg(es, arch.R_R0) == ord("z")

# -------------------------------------------------------------------------
# Dumps
# -------------------------------------------------------------------------

def test_dumps(capsys):
    es = run([add_imm(0, 0, -1), st(0, 1), HALT, 0])
    em.dump_registers(es)
    em.dump_memory(es, 0x3000, 0x3003)
    em.dump_modified_registers_summary(es)
    em.dump_accessed_memory_summary(es)
    out = capsys.readouterr().out
    assert "R0: ffff (-1)" in out
    assert "COND: N" in out
    assert "MEM[3000]: 103f 3001 f025 ffff" in out
    assert "Addresses 3000 to 3003:" in out

def test_dump_memory_reaches_top_of_memory(capsys):
    es = machine([HALT])
    es.ab.write_mem16(es, 0xFFFF, 0xBEEF)
    em.dump_memory(es, 0xFFF8, 0xFFFF)
    out = capsys.readouterr().out
    assert "MEM[fff8]: 0000 0000 0000 0000 0000 0000 0000 beef\n" in out

def test_dump_memory_partial_row(capsys):
    es = machine([add_imm(0, 0, 1), HALT])
    em.dump_memory(es, 0x3000, 0x3001)
    assert "MEM[3000]: 1021 f025\n" in capsys.readouterr().out

def test_group_contiguous():
    assert em.group_contiguous({5, 1, 2, 3, 9}) == [[1, 2, 3], [5], [9]]
