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
Output format:

decode() and process() return a list of annotations ordered by start
sample. Each entry is one of:
 - Event(ss, es, category, label): a status without numeric payload
   ('ACK', 'NAK', 'Framing error', 'CHK OK', 'CHK ERR (exp 33, got 34)',
   'No CHK / malformed', 'Incomplete block', 'Start bit glitch', ...).
 - Value(ss, es, category, value, label, bits): one decoded byte, with
   'bits' always 8. The label names the byte's role and ends with its
   mode bit, e.g. 'Addr Bill Validator: POLL M=1', 'Sub VEND REQUEST M=0',
   'Data M=0', 'LastData M=1', 'CHK M=0'.

The 'category' is a Category member; annotation.COLORS maps it to the
timeline color of that category.
'''

import logging

from . import frame
from .annotation import merge
from .block import assemble
from .interpret import interpret

logger = logging.getLogger(__name__)

# Channel name used by the host for the MDB data line.
INPUT = 'Input'

class OptionError(KeyError):
    pass

def _fraction(v):
    return 0 <= v < 1

def _positive(v):
    return v > 0

class Decoder:
    id = 'mdb'
    name = 'MDB'
    longname = 'Multi-Drop Bus'
    desc = 'Multi-Drop Bus (MDB) protocol decoder for vending machine peripherals.'
    license = 'gplv2+'
    channels = (
        {'id': INPUT, 'name': 'Input', 'desc': 'MDB data line'},
    )
    # 9600 baud, 8 data bits, mode bit, 1 stop bit, idle high are fixed by
    # the MDB standard. Only the decoder's own timing allowances are options.
    options = (
        {'id': 'sample_point', 'desc': 'Sample point (fraction of a bit)',
            'default': 0.5},
        {'id': 'start_hold', 'desc': 'Minimum START bit low time (fraction of a bit)',
            'default': 0.5},
        {'id': 'max_inter_byte_ms', 'desc': 'Maximum inter-byte time (ms)',
            'default': 1.0},
    )
    checks = {
        'sample_point': _fraction,
        'start_hold': _fraction,
        'max_inter_byte_ms': _positive,
    }

    def __init__(self, **options):
        defaults = {o['id']: o['default'] for o in self.options}
        unknown = set(options) - set(defaults)
        if unknown:
            raise OptionError('Unknown option(s): {}'.format(', '.join(sorted(unknown))))
        self.options = defaults
        for key, value in options.items():
            self.options[key] = self.get_option(key, value, defaults[key])

    def get_option(self, key, value, default):
        # Assume the default for invalid input, like the sample point
        # option of the UART decoder does.
        try:
            ok = self.checks[key](float(value))
        except (TypeError, ValueError):
            ok = False
        if not ok:
            logger.debug('Invalid value %r for option %s, using %r.', value, key, default)
            return default
        return float(value)

    def decode(self, samples, sample_period):
        opt = self.options
        result = frame.decode(samples, sample_period,
                              opt['sample_point'], opt['start_hold'])
        blocks = assemble(result.frames, sample_period,
                          opt['max_inter_byte_ms'], result.truncated)
        anns = interpret(blocks)
        logger.debug('%d frames, %d framing errors, %d blocks.',
                     len(result.frames), len(result.errors), len(blocks))
        return merge(result.errors, anns)

    def process(self, input_waveforms, sample_period):
        '''Decode the 'Input' channel of a channel name to samples mapping.'''
        samples = input_waveforms.get(INPUT) if input_waveforms else None
        if samples is None:
            logger.debug('No %r channel, nothing to decode.', INPUT)
            return []
        return self.decode(samples, sample_period)

def decode(samples, sample_period, **options):
    return Decoder(**options).decode(samples, sample_period)
