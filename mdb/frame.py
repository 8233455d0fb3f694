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
Bit level demodulation of MDB frames from a dense sample array.

An MDB frame is 11 bit times long: one START bit (low), eight data bits
(LSB first), the mode bit and one STOP bit (high). The line idles high.

The scan is a two state machine. In IDLE the decoder looks for the next
falling edge after the current position. In IN FRAME it samples every
bit cell at a fixed fraction of the bit period, counted from the start
of that cell, and checks the STOP bit. Frames with a bad STOP bit, or
whose sample points run past the end of the capture, are framing errors
and are reported as annotations instead of frames. When the START bit of
such a frame was itself too short, it was a noise spike and the search
resumes right after it instead of after the whole frame window.
'''

import logging
from collections import namedtuple
from enum import Enum

import numpy as np

from .annotation import Category, Event

logger = logging.getLogger(__name__)

MDB_BAUDRATE = 9600
DATA_BITS = 8
# START + 8 data + mode + STOP.
FRAME_BITS = 11
IDLE_LEVEL = True

class Validity(Enum):
    OK = 'ok'
    FRAMING_ERROR = 'framing error'
    GLITCH = 'glitch'

class State(Enum):
    IDLE = 'WAIT FOR START BIT'
    IN_FRAME = 'GET FRAME'
    DONE = 'DONE'

class Frame(namedtuple('Frame', 'ss span value mode validity')):
    '''One demodulated frame. 'ss' is the sample index of the START bit,
    'span' the frame length in samples.'''
    __slots__ = ()

    @property
    def es(self):
        return self.ss + self.span

    def __str__(self):
        return '0x{:02X} (M={:d}) @{:d}'.format(self.value, self.mode, self.ss)

FrameResult = namedtuple('FrameResult', 'frames errors truncated')

EMPTY = FrameResult((), (), None)

def bitpack(bits):
    return sum([b << i for i, b in enumerate(bits)])

def samples_per_bit(sample_period):
    '''Return the number of samples per bit at 9600 baud, or None when the
    sample rate cannot resolve bit centers (less than 2 samples per bit).'''
    if not sample_period or sample_period <= 0:
        return None
    exact = 1.0 / (sample_period * MDB_BAUDRATE)
    if exact < 2:
        return None
    return int(round(exact))

def sample_view(samples):
    '''Read-only boolean view of the caller's samples.'''
    view = np.asarray(samples, dtype=bool).reshape(-1).view()
    view.flags.writeable = False
    return view

class FrameDecoder:

    def __init__(self, samples, spb, sample_point=0.5, start_hold=0.5):
        self.samples = samples
        self.spb = spb
        self.span = FRAME_BITS * spb
        self.offset = int(spb * sample_point)
        self.hold = int(spb * start_hold)
        s = samples
        # First low sample of every idle-to-start transition.
        self.starts = np.flatnonzero(s[:-1] & ~s[1:]) + 1

    def sample_point(self, ss, bitnum):
        # Bit 0 is the START bit, 1..8 data, 9 mode, 10 STOP.
        return ss + bitnum * self.spb + self.offset

    def seek_start(self, pos):
        '''IDLE: find the next START bit beginning at or after 'pos'.'''
        i = np.searchsorted(self.starts, pos)
        if i == len(self.starts):
            return State.DONE, pos
        return State.IN_FRAME, int(self.starts[i])

    def read_frame(self, ss):
        '''IN FRAME: demodulate the frame starting at 'ss'. Returns the
        next state, the scan position and the frame.'''
        s, n = self.samples, len(self.samples)
        # Annotations never run past the end of the capture.
        span = min(self.span, n - ss)

        # A START bit that does not stay low long enough is noise. Still
        # try to demodulate, the STOP bit check gets the final say.
        glitch = self.hold > 0 and bool(s[ss:ss + self.hold].any())

        bits = []
        for bitnum in range(1, FRAME_BITS):
            idx = self.sample_point(ss, bitnum)
            if idx >= n:
                value = bitpack(bits[:DATA_BITS])
                frame = Frame(ss, span, value, False, Validity.FRAMING_ERROR)
                return State.DONE, n, frame
            bits.append(int(s[idx] == IDLE_LEVEL))

        value = bitpack(bits[:DATA_BITS])
        mode, stop = bool(bits[DATA_BITS]), bool(bits[DATA_BITS + 1])
        if not stop:
            frame = Frame(ss, span, value, mode, Validity.FRAMING_ERROR)
            if glitch:
                # A noise spike, not a START bit. The real START bit may
                # lie inside this window, search again right after it.
                return State.IDLE, ss + 1, frame
            return State.IDLE, ss + self.span, frame
        validity = Validity.GLITCH if glitch else Validity.OK
        return State.IDLE, ss + self.span, Frame(ss, span, value, mode, validity)

    def run(self):
        frames, errors = [], []
        truncated = None
        state, pos = State.IDLE, 0
        while state is not State.DONE:
            if state is State.IDLE:
                state, pos = self.seek_start(pos)
                continue
            state, pos, frame = self.read_frame(pos)
            if frame.validity is not Validity.FRAMING_ERROR:
                frames.append(frame)
                continue
            errors.append(Event(frame.ss, frame.es, Category.ERROR, 'Framing error'))
            if state is State.DONE:
                truncated = frame.ss
        return FrameResult(tuple(frames), tuple(errors), truncated)

def decode(samples, sample_period, sample_point=0.5, start_hold=0.5):
    '''Demodulate every frame of 'samples' (True = high, the idle level)
    captured at 'sample_period' seconds per sample.'''
    if samples is None or len(samples) == 0:
        return EMPTY
    spb = samples_per_bit(sample_period)
    if spb is None:
        logger.debug('Sample period %r too long for %d baud, not decoding.',
                     sample_period, MDB_BAUDRATE)
        return EMPTY
    return FrameDecoder(sample_view(samples), spb, sample_point, start_hold).run()
