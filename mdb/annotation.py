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
Output records handed to the rendering layer.

An Event is a labelled span without a numeric payload (ACK/NAK, framing
errors, checksum status, ...). A Value is a labelled span carrying one
decoded byte. Both carry a Category; COLORS maps each category to the
color name the timeline renderer uses for it.
'''

from collections import namedtuple
from enum import Enum, unique
from heapq import merge as _merge
from types import MappingProxyType

@unique
class Category(Enum):
    SUCCESS = 'success'
    ERROR = 'error'
    WARNING = 'warning'
    INFO = 'info'
    ADDRESS = 'address'
    SUBCOMMAND = 'sub-command'
    MASTER_DATA = 'master-data'
    PERIPHERAL_DATA = 'peripheral-data'
    LAST_DATA = 'last-data'
    CHECKSUM_OK = 'checksum-ok'
    CHECKSUM_ERROR = 'checksum-error'

COLORS = MappingProxyType({
    Category.SUCCESS: 'Green',
    Category.ERROR: 'Red',
    Category.WARNING: 'Orange',
    Category.INFO: 'Gray',
    Category.ADDRESS: 'DarkBlue',
    Category.SUBCOMMAND: 'Purple',
    Category.MASTER_DATA: 'Blue',
    Category.PERIPHERAL_DATA: 'Green',
    Category.LAST_DATA: 'DarkGreen',
    Category.CHECKSUM_OK: 'Black',
    Category.CHECKSUM_ERROR: 'Red',
})

Event = namedtuple('Event', 'ss es category label')

Value = namedtuple('Value', 'ss es category value label bits', defaults=(8,))

def color(ann):
    return COLORS[ann.category]

class Emitter:
    '''Collects the annotations of one decode call in production order.'''

    def __init__(self):
        self.out = []

    def event(self, ss, es, category, label):
        self.out.append(Event(ss, es, category, label))

    def value(self, frame, category, label):
        self.out.append(Value(frame.ss, frame.es, category, frame.value, label))

    def event_on(self, frame, category, label):
        self.event(frame.ss, frame.es, category, label)

def merge(*streams):
    '''Merge annotation sequences that are each ordered by start sample
    into one ordered list. Ties keep the order of the streams.'''
    return list(_merge(*streams, key=lambda a: a.ss))
