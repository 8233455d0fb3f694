##
## This file is part of the mdb-decode project.
##
## Copyright (C) 2025 The mdb-decode authors
##
## This program is free software; you can redistribute it and/or modify
## it under the terms of the GNU General Public License as published by
## the Free Software Foundation; either version 2 of the License, or
## (at your option) any later version.
##
## This program is distributed in the hope that it will be useful,
## but WITHOUT ANY WARRANTY; without even the implied warranty of
## MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
## GNU General Public License for more details.
##
## You should have received a copy of the GNU General Public License
## along with this program; if not, see <http://www.gnu.org/licenses/>.
##

'''
Protocol level interpretation of MDB blocks.

Short MDB overview:
 - The VMC (master) sends an address byte with the mode bit set, followed
   by data bytes and a checksum byte, both with the mode bit clear. The
   checksum is the sum of the address and data bytes, modulo 256.
 - A peripheral answers with data bytes; the mode bit set marks its last
   data byte, which is followed by the checksum of all its data bytes.
 - Single byte answers with the mode bit set are ACK (0x00) or NAK (0xFF).

Every byte of a multi-byte block is annotated on its own. Checksum status
and structural problems get an extra event on the byte they concern.
'''

import logging

from .annotation import Category, Emitter
from .block import ACK, NAK, Direction
from .frame import Validity
from .lists import command_name, has_subcommands, peripheral_name, subcommand_name

logger = logging.getLogger(__name__)

def checksum(frames):
    return sum(f.value for f in frames) & 0xFF

def master_checksum(frames):
    '''Index of the checksum byte of a master block, or None if the block
    does not end in a mode=0 byte after a mode=1 address.'''
    if frames[0].mode and not frames[-1].mode:
        return len(frames) - 1
    return None

def peripheral_checksum(frames):
    '''Index of the checksum byte of a peripheral block: the byte right
    after the first mode=1 byte, if that byte has mode=0.'''
    for i, f in enumerate(frames):
        if not f.mode:
            continue
        if i + 1 < len(frames) and not frames[i + 1].mode:
            return i + 1
        return None
    return None

def detail(kind, frame):
    return '{} M={:d}'.format(kind, frame.mode)

class Interpreter:

    def __init__(self):
        self.emit = Emitter()

    def interpret(self, blocks):
        for block in blocks:
            mark = len(self.emit.out)
            try:
                self.handle_block(block)
            except Exception as e:
                # Drop the partial output of this block, keep going with
                # the next one.
                logger.exception('Cannot interpret %s', block)
                del self.emit.out[mark:]
                self.emit.event(block.ss, block.es, Category.ERROR,
                                'Decoder error: {}'.format(e))
        return self.emit.out

    def handle_block(self, block):
        if block.incomplete:
            self.emit.event(block.ss, block.es, Category.WARNING, 'Incomplete block')
        if len(block.frames) == 1:
            self.handle_single(block.frames[0])
        elif block.direction is Direction.MASTER_TO_PERIPHERAL:
            self.handle_master(block.frames)
        else:
            self.handle_peripheral(block.frames)

    def handle_single(self, frame):
        if frame.validity is Validity.GLITCH and frame.mode and frame.value == NAK:
            # A lone spike on an idle line reads as all ones.
            self.check_glitch(frame)
            return
        if frame.mode and frame.value == ACK:
            self.emit.event_on(frame, Category.SUCCESS, 'ACK')
        elif frame.mode and frame.value == NAK:
            self.emit.event_on(frame, Category.ERROR, 'NAK')
        else:
            # A lone mode=1 byte is a truncated block or an answer that
            # needs context; a lone mode=0 byte is most likely noise.
            self.emit.event_on(frame, Category.WARNING,
                '??? (0x{:02X} M={:d})'.format(frame.value, frame.mode))
        self.check_glitch(frame)

    def handle_master(self, frames):
        chk = master_checksum(frames)
        address = frames[0].value
        for i, frame in enumerate(frames):
            if i == 0:
                self.emit.value(frame, Category.ADDRESS, detail('Addr {}: {}'.format(
                    peripheral_name(address), command_name(address)), frame))
            elif i == chk:
                self.put_checksum(frames, i)
            elif i == 1 and not frame.mode and has_subcommands(address):
                self.emit.value(frame, Category.SUBCOMMAND, detail('Sub {}'.format(
                    subcommand_name(address, frame.value)), frame))
            else:
                self.emit.value(frame, Category.MASTER_DATA, detail('Data', frame))
            self.check_glitch(frame)
        if chk is None:
            self.put_malformed(frames[-1])

    def handle_peripheral(self, frames):
        chk = peripheral_checksum(frames)
        for i, frame in enumerate(frames):
            if chk is None:
                self.emit.value(frame, Category.PERIPHERAL_DATA, detail('Data', frame))
            elif i == chk - 1:
                self.emit.value(frame, Category.LAST_DATA, detail('LastData', frame))
            elif i == chk:
                self.put_checksum(frames, i)
            else:
                self.emit.value(frame, Category.PERIPHERAL_DATA, detail('Data', frame))
            self.check_glitch(frame)
        if chk is None:
            self.put_malformed(frames[-1])

    def put_checksum(self, frames, i):
        frame, expected = frames[i], checksum(frames[:i])
        if frame.value == expected:
            self.emit.value(frame, Category.CHECKSUM_OK, detail('CHK', frame))
            self.emit.event_on(frame, Category.SUCCESS, 'CHK OK')
        else:
            self.emit.value(frame, Category.CHECKSUM_ERROR, detail('CHK', frame))
            self.emit.event_on(frame, Category.ERROR,
                'CHK ERR (exp {:02X}, got {:02X})'.format(expected, frame.value))

    def put_malformed(self, frame):
        self.emit.event_on(frame, Category.WARNING, 'No CHK / malformed')

    def check_glitch(self, frame):
        if frame.validity is Validity.GLITCH:
            self.emit.event_on(frame, Category.WARNING, 'Start bit glitch')

def interpret(blocks):
    return Interpreter().interpret(blocks)
