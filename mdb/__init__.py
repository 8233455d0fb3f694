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
MDB (Multi-Drop Bus) is the 9-bit serial bus between the controller of a
vending machine (VMC, the master) and its peripherals: coin changers,
bill validators, cashless readers, dispensers and others.

MDB is a UART variant at a fixed 9600 baud: one START bit, eight data
bits (LSB first), one mode bit and one STOP bit, no parity, idle high.
The mode bit marks the address byte of a VMC message and the last data
byte of a peripheral answer (and the single byte ACK/NAK answers).

The decoder works on a complete capture in three steps: frames are
demodulated from the sample array, frames are grouped into blocks using
the inter-byte time allowance, and every block is interpreted: direction,
checksum, peripheral, command and sub-command.

Usage:

    from mdb import decode
    for ann in decode(samples, sample_period):
        print(ann)
'''

from .pd import Decoder, decode
