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
Synthetic MDB waveforms, for tests and examples.

    w = Waveform(1e-6)
    w.idle(100).message(master_message(0x33))
    samples = w.samples()
'''

import numpy as np

from .frame import DATA_BITS, samples_per_bit

def bitunpack(num, minbits=0):
    res = []
    while num or minbits > 0:
        res.append(num & 1)
        num >>= 1
        minbits -= 1
    return tuple(res)

def frame_bits(value, mode, stop=True):
    '''Line levels of one frame, one entry per bit time.'''
    data = bitunpack(value & 0xFF, DATA_BITS)
    return (False,) + tuple(bool(b) for b in data) + (bool(mode), bool(stop))

def master_message(address, *data):
    '''(value, mode) pairs of a VMC message: address, data, checksum.'''
    chk = (address + sum(data)) & 0xFF
    return [(address, True)] + [(d, False) for d in data] + [(chk, False)]

def peripheral_message(*data):
    '''(value, mode) pairs of a peripheral answer: the last data byte has
    the mode bit set and is followed by the checksum.'''
    chk = sum(data) & 0xFF
    pairs = [(d, False) for d in data]
    pairs[-1] = (data[-1], True)
    return pairs + [(chk, False)]

class Waveform:

    def __init__(self, sample_period):
        self.sample_period = sample_period
        self.spb = samples_per_bit(sample_period)
        if self.spb is None:
            raise ValueError('Sample period {!r} too long for MDB'.format(sample_period))
        self.chunks = []
        self.length = 0

    def append(self, levels):
        levels = np.asarray(levels, dtype=bool)
        self.chunks.append(levels)
        self.length += len(levels)
        return self

    def idle(self, count):
        return self.append(np.ones(count, dtype=bool))

    def low(self, count):
        return self.append(np.zeros(count, dtype=bool))

    def gap_ms(self, ms):
        return self.idle(int(round(ms / 1000.0 / self.sample_period)))

    def frame(self, value, mode, stop=True):
        return self.append(np.repeat(frame_bits(value, mode, stop), self.spb))

    def message(self, pairs, gap=0):
        '''Frames for (value, mode) pairs, 'gap' idle samples apart.'''
        for i, (value, mode) in enumerate(pairs):
            if i and gap:
                self.idle(gap)
            self.frame(value, mode)
        return self

    def samples(self):
        if not self.chunks:
            return np.zeros(0, dtype=bool)
        return np.concatenate(self.chunks)
