import pytest

from xvtools.riscv import (
    MAXPTLEVEL,
    PGSIZE,
    PTE_R,
    PTE_U,
    PTE_V,
    PTE_W,
    SATP_SV39,
    make_satp,
    pa2pte,
    pg_round_down,
    pg_round_up,
    pte2pa,
    pte_flags,
    px,
    px_shift,
)


def test_round_up_and_down_on_boundary():
    assert pg_round_up(0) == 0
    assert pg_round_up(1) == PGSIZE
    assert pg_round_up(PGSIZE) == PGSIZE
    assert pg_round_down(PGSIZE + 1) == PGSIZE
    assert pg_round_down(PGSIZE - 1) == 0


@pytest.mark.parametrize("value", [0, 1, 17, 4095, 4096, 4097, 123456789])
def test_rounding_invariants(value):
    up = pg_round_up(value)
    down = pg_round_down(value)
    assert up % PGSIZE == 0
    assert down % PGSIZE == 0
    assert down <= value <= up
    assert up - down in (0, PGSIZE)


@pytest.mark.parametrize("pa", [0x80000000, 0x87FFF000, 0x1000, 0])
def test_pte_round_trip(pa):
    assert pte2pa(pa2pte(pa)) == pa


def test_pte_flags_separate_from_address():
    pte = pa2pte(0x80001000) | PTE_V | PTE_R | PTE_W | PTE_U
    assert pte_flags(pte) == PTE_V | PTE_R | PTE_W | PTE_U
    assert pte2pa(pte) == 0x80001000


def test_px_extracts_each_level():
    va = (3 << px_shift(2)) | (5 << px_shift(1)) | (7 << px_shift(0)) | 0x123
    assert px(2, va) == 3
    assert px(1, va) == 5
    assert px(0, va) == 7


def test_px_shift_levels_are_nine_bits_apart():
    shifts = [px_shift(level) for level in range(MAXPTLEVEL + 1)]
    assert [b - a for a, b in zip(shifts, shifts[1:])] == [9, 9]


def test_make_satp_holds_mode_and_ppn():
    satp = make_satp(0x80000000)
    assert satp & SATP_SV39 == SATP_SV39
    assert (satp & ~SATP_SV39) << 12 == 0x80000000