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
Grouping of frames into blocks. A block is a run of frames in which no
gap between the end of one frame and the start of the next exceeds the
inter-byte allowance (1 ms during an MDB transmission).
'''

from collections import namedtuple
from enum import Enum

ACK = 0x00
NAK = 0xFF

class Direction(Enum):
    MASTER_TO_PERIPHERAL = 'M->P'
    PERIPHERAL_TO_MASTER = 'P->M'
    UNKNOWN = '?'

class Block(namedtuple('Block', 'frames incomplete', defaults=(False,))):
    __slots__ = ()

    @property
    def ss(self):
        return self.frames[0].ss

    @property
    def es(self):
        return self.frames[-1].es

    @property
    def direction(self):
        # The address byte of a master block has the mode bit set. ACK
        # and NAK have it set too but come from a peripheral.
        if not self.frames:
            return Direction.UNKNOWN
        first = self.frames[0]
        if first.mode and first.value not in (ACK, NAK):
            return Direction.MASTER_TO_PERIPHERAL
        return Direction.PERIPHERAL_TO_MASTER

    def __str__(self):
        return '{} Block ({:d} bytes) @{:d}'.format(
            self.direction.value, len(self.frames), self.ss)

def max_gap_samples(sample_period, max_inter_byte_ms):
    return (max_inter_byte_ms / 1000.0) / sample_period

def assemble(frames, sample_period, max_inter_byte_ms, truncated=None):
    '''Split 'frames' into blocks. 'truncated' is the start sample of a
    frame cut off by the end of the capture; if it would have joined the
    last block, that block is marked incomplete.'''
    if not frames:
        return []

    limit = max_gap_samples(sample_period, max_inter_byte_ms)
    blocks, current = [], [frames[0]]
    for prev, frame in zip(frames, frames[1:]):
        if frame.ss - prev.es <= limit:
            current.append(frame)
        else:
            blocks.append(Block(tuple(current)))
            current = [frame]
    last = Block(tuple(current))
    if truncated is not None and truncated - last.es <= limit:
        last = last._replace(incomplete=True)
    blocks.append(last)
    return blocks
