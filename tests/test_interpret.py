import pytest

import mdb.interpret
from mdb.annotation import Category, Event, Value
from mdb.block import Block
from mdb.frame import Validity
from mdb.interpret import interpret, peripheral_checksum

from helpers import SPAN, frames_at, is_ordered, make_frame

def block(pairs, ss=100, incomplete=False):
    return Block(tuple(frames_at(ss, pairs)), incomplete)

def values(anns):
    return [(a.value, a.category, a.label) for a in anns if isinstance(a, Value)]

def events(anns):
    return [(a.category, a.label) for a in anns if isinstance(a, Event)]

def test_ack():
    anns = interpret([Block((make_frame(100, 0x00, True),))])
    assert anns == [Event(100, 210, Category.SUCCESS, 'ACK')]

def test_nak():
    anns = interpret([Block((make_frame(100, 0xFF, True),))])
    assert anns == [Event(100, 210, Category.ERROR, 'NAK')]

@pytest.mark.parametrize('mode,label', [
    (True, '??? (0x42 M=1)'),
    (False, '??? (0x42 M=0)'),
    ])
def test_lone_frame(mode, label):
    anns = interpret([block([(0x42, mode)])])
    assert events(anns) == [(Category.WARNING, label)]
    assert values(anns) == []

def test_master_checksum_ok():
    anns = interpret([block([(0x30, True), (0x01, False), (0x02, False), (0x33, False)])])
    assert values(anns) == [
        (0x30, Category.ADDRESS, 'Addr Bill Validator: RESET M=1'),
        (0x01, Category.MASTER_DATA, 'Data M=0'),
        (0x02, Category.MASTER_DATA, 'Data M=0'),
        (0x33, Category.CHECKSUM_OK, 'CHK M=0'),
    ]
    assert events(anns) == [(Category.SUCCESS, 'CHK OK')]
    chk_value, chk_event = anns[-2:]
    assert (chk_value.ss, chk_value.es) == (chk_event.ss, chk_event.es)
    assert all(a.bits == 8 for a in anns if isinstance(a, Value))

@pytest.mark.parametrize('chk', [0x00, 0x32, 0x34, 0xFF])
def test_master_checksum_error(chk):
    anns = interpret([block([(0x30, True), (0x01, False), (0x02, False), (chk, False)])])
    assert values(anns)[-1] == (chk, Category.CHECKSUM_ERROR, 'CHK M=0')
    assert events(anns) == [
        (Category.ERROR, 'CHK ERR (exp 33, got {:02X})'.format(chk))]

def test_master_subcommand():
    anns = interpret([block([(0x13, True), (0x00, False), (0x00, False),
                             (0x64, False), (0x77, False)])])
    assert values(anns) == [
        (0x13, Category.ADDRESS, 'Addr Cashless #1: VEND M=1'),
        (0x00, Category.SUBCOMMAND, 'Sub VEND REQUEST M=0'),
        (0x00, Category.MASTER_DATA, 'Data M=0'),
        (0x64, Category.MASTER_DATA, 'Data M=0'),
        (0x77, Category.CHECKSUM_OK, 'CHK M=0'),
    ]

def test_command_without_subcommands():
    anns = interpret([block([(0x0D, True), (0x12, False), (0x1F, False)])])
    assert [v[1] for v in values(anns)] == [
        Category.ADDRESS, Category.MASTER_DATA, Category.CHECKSUM_OK]
    assert values(anns)[0][2] == 'Addr Changer: DISPENSE M=1'

def test_checksum_is_never_a_subcommand():
    anns = interpret([block([(0x17, True), (0x17, False)])])
    assert [v[1] for v in values(anns)] == [Category.ADDRESS, Category.CHECKSUM_OK]

def test_master_malformed():
    anns = interpret([block([(0x30, True), (0x01, False), (0x02, True)])])
    assert [v[1] for v in values(anns)] == [
        Category.ADDRESS, Category.MASTER_DATA, Category.MASTER_DATA]
    last = anns[-1]
    assert (last.category, last.label) == (Category.WARNING, 'No CHK / malformed')
    assert (last.ss, last.es) == (100 + 2 * SPAN, 100 + 3 * SPAN)

def test_peripheral_answer():
    anns = interpret([block([(0x01, False), (0x02, True), (0x03, False)])])
    assert values(anns) == [
        (0x01, Category.PERIPHERAL_DATA, 'Data M=0'),
        (0x02, Category.LAST_DATA, 'LastData M=1'),
        (0x03, Category.CHECKSUM_OK, 'CHK M=0'),
    ]
    assert events(anns) == [(Category.SUCCESS, 'CHK OK')]

def test_peripheral_checksum_error():
    anns = interpret([block([(0x01, False), (0x02, True), (0x04, False)])])
    assert events(anns) == [(Category.ERROR, 'CHK ERR (exp 03, got 04)')]

def test_peripheral_first_marker_wins():
    pairs = [(0x05, False), (0x01, True), (0x06, False), (0x02, True), (0x09, False)]
    assert peripheral_checksum(frames_at(0, pairs)) == 2
    anns = interpret([block(pairs)])
    assert [v[1] for v in values(anns)] == [
        Category.PERIPHERAL_DATA, Category.LAST_DATA, Category.CHECKSUM_OK,
        Category.PERIPHERAL_DATA, Category.PERIPHERAL_DATA]
    assert is_ordered(anns)

def test_peripheral_without_checksum():
    anns = interpret([block([(0x01, False), (0x02, False)])])
    assert [v[1] for v in values(anns)] == [Category.PERIPHERAL_DATA] * 2
    assert events(anns) == [(Category.WARNING, 'No CHK / malformed')]

def test_peripheral_marker_followed_by_mode_byte():
    assert peripheral_checksum(frames_at(0, [(0x01, False), (0x02, True), (0x03, True)])) is None

def test_ack_inside_block_is_data():
    anns = interpret([block([(0x00, False), (0xFF, False), (0x05, True), (0x04, False)])])
    assert [v[1] for v in values(anns)] == [
        Category.PERIPHERAL_DATA, Category.PERIPHERAL_DATA,
        Category.LAST_DATA, Category.CHECKSUM_OK]
    assert ('ACK' not in [e[1] for e in events(anns)])

def test_ack_value_starting_longer_block():
    anns = interpret([block([(0x00, True), (0x00, False)])])
    assert values(anns) == [
        (0x00, Category.LAST_DATA, 'LastData M=1'),
        (0x00, Category.CHECKSUM_OK, 'CHK M=0'),
    ]

def test_incomplete_block():
    blk = block([(0x30, True), (0x01, False)], incomplete=True)
    anns = interpret([blk])
    assert anns[0] == Event(blk.ss, blk.es, Category.WARNING, 'Incomplete block')
    assert is_ordered(anns)

def test_glitch_warning():
    f = make_frame(100, 0x00, True, Validity.GLITCH)
    anns = interpret([Block((f,))])
    assert anns == [
        Event(100, 210, Category.SUCCESS, 'ACK'),
        Event(100, 210, Category.WARNING, 'Start bit glitch'),
    ]

def test_lone_all_ones_glitch_is_only_a_glitch():
    f = make_frame(100, 0xFF, True, Validity.GLITCH)
    anns = interpret([Block((f,))])
    assert anns == [Event(100, 210, Category.WARNING, 'Start bit glitch')]

def test_fault_in_one_block_does_not_stop_the_next(monkeypatch):
    def boom(address):
        raise RuntimeError('boom')
    monkeypatch.setattr(mdb.interpret, 'command_name', boom)
    master = block([(0x30, True), (0x30, False)])
    ack = Block((make_frame(1000, 0x00, True),))
    anns = interpret([master, ack])
    assert anns == [
        Event(master.ss, master.es, Category.ERROR, 'Decoder error: boom'),
        Event(1000, 1110, Category.SUCCESS, 'ACK'),
    ]

def test_blocks_in_order():
    blocks = [
        block([(0x33, True), (0x33, False)], ss=0),
        Block((make_frame(500, 0x00, True),)),
        block([(0x01, False), (0x02, True), (0x03, False)], ss=1000),
    ]
    anns = interpret(blocks)
    assert is_ordered(anns)
    assert anns[0].ss == 0 and anns[-1].ss == 1000 + 2 * SPAN
