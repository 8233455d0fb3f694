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
Static MDB lookup data: peripheral address bases, the commands each kind
of peripheral understands, and the sub-commands carried in the byte that
follows some of those commands.

An MDB address byte is split in two: the top five bits select the
peripheral (the "address base", address & 0xF8), the low three bits select
the command. All tables are read-only views built once at import time.
'''

from types import MappingProxyType

ADDRESS_MASK = 0xF8
COMMAND_MASK = 0x07

def _freeze(d):
    return MappingProxyType({k: _freeze(v) if isinstance(v, dict) else v
                             for k, v in d.items()})

# Address base -> (peripheral name, command set).
PERIPHERALS = _freeze({
    0x08: ('Changer', 'changer'),
    0x10: ('Cashless #1', 'cashless'),
    0x18: ('Communications Gateway', 'gateway'),
    0x20: ('Display', 'display'),
    0x28: ('Energy Management System', 'energy'),
    0x30: ('Bill Validator', 'bill'),
    0x40: ('Universal Satellite Device #1', 'usd'),
    0x48: ('Universal Satellite Device #2', 'usd'),
    0x50: ('Universal Satellite Device #3', 'usd'),
    0x58: ('Dispenser #1', 'dispenser'),
    0x60: ('Cashless #2', 'cashless'),
    0x68: ('Age Verification Device', 'age'),
    0x70: ('Dispenser #2', 'dispenser'),
})

# Inclusive ranges of address bases that never map to a named peripheral.
RESERVED = (
    (0x00, 0x00, 'Reserved (VMC)'),
    (0x38, 0x38, 'Reserved'),
    (0x78, 0xD8, 'Reserved'),
    (0xE0, 0xF0, 'Experimental'),
    (0xF8, 0xF8, 'VMC Specific'),
)

COMMANDS = _freeze({
    'changer': {
        0: 'RESET',
        1: 'SETUP',
        2: 'TUBE STATUS',
        3: 'POLL',
        4: 'COIN TYPE',
        5: 'DISPENSE',
        7: 'EXPANSION',
    },
    'cashless': {
        0: 'RESET',
        1: 'SETUP',
        2: 'POLL',
        3: 'VEND',
        4: 'READER',
        5: 'REVALUE',
        7: 'EXPANSION',
    },
    'gateway': {
        0: 'RESET',
        1: 'SETUP',
        2: 'POLL',
        3: 'REPORT',
        4: 'CONTROL',
        7: 'EXPANSION',
    },
    'display': {
        0: 'RESET',
        1: 'SETUP',
        2: 'POLL',
        3: 'DISPLAY REQUEST',
        7: 'EXPANSION',
    },
    'energy': {
        0: 'RESET',
        1: 'SETUP',
        2: 'POLL',
        3: 'CONTROL',
        7: 'EXPANSION',
    },
    'bill': {
        0: 'RESET',
        1: 'SETUP',
        2: 'SECURITY',
        3: 'POLL',
        4: 'BILL TYPE',
        5: 'ESCROW',
        6: 'STACKER',
        7: 'EXPANSION',
    },
    'usd': {
        0: 'RESET',
        1: 'SETUP',
        2: 'POLL',
        3: 'VEND',
        4: 'FUNDS',
        5: 'CONTROL',
        7: 'EXPANSION',
    },
    'dispenser': {
        0: 'RESET',
        1: 'SETUP',
        2: 'DISPENSER STATUS',
        3: 'POLL',
        4: 'MANUAL DISPENSE ENABLE',
        5: 'PAYOUT',
        7: 'EXPANSION',
    },
    'age': {
        0: 'RESET',
        1: 'SETUP',
        2: 'POLL',
        3: 'CONTROL',
        4: 'REQUEST',
        7: 'EXPANSION',
    },
})

# File transport layer sub-commands, shared by every EXPANSION command
# that supports FTL.
FTL = {
    0xFA: 'FTL REQ TO RCV',
    0xFB: 'FTL RETRY/DENY',
    0xFC: 'FTL SEND BLOCK',
    0xFD: 'FTL OK TO SEND',
    0xFE: 'FTL REQ TO SEND',
}

def with_ftl(subs):
    subs.update(FTL)
    return subs

SUBCOMMANDS = _freeze({
    'changer': {
        7: with_ftl({
            0x00: 'IDENTIFICATION',
            0x01: 'FEATURE ENABLE',
            0x02: 'PAYOUT',
            0x03: 'PAYOUT STATUS',
            0x04: 'PAYOUT VALUE POLL',
            0x05: 'SEND DIAGNOSTIC STATUS',
            0x06: 'SEND CONTROLLED MANUAL FILL REPORT',
            0x07: 'SEND CONTROLLED MANUAL PAYOUT REPORT',
            0xFF: 'DIAGNOSTICS',
        }),
    },
    'cashless': {
        1: {
            0x00: 'CONFIG DATA',
            0x01: 'MAX/MIN PRICES',
        },
        3: {
            0x00: 'VEND REQUEST',
            0x01: 'VEND CANCEL',
            0x02: 'VEND SUCCESS',
            0x03: 'VEND FAILURE',
            0x04: 'SESSION COMPLETE',
            0x05: 'CASH SALE',
            0x06: 'NEGATIVE VEND REQUEST',
        },
        4: {
            0x00: 'READER DISABLE',
            0x01: 'READER ENABLE',
            0x02: 'READER CANCEL',
            0x03: 'DATA ENTRY RESPONSE',
        },
        5: {
            0x00: 'REVALUE REQUEST',
            0x01: 'REVALUE LIMIT REQUEST',
        },
        7: with_ftl({
            0x00: 'REQUEST ID',
            0x01: 'READ USER FILE',
            0x02: 'WRITE USER FILE',
            0x03: 'WRITE TIME/DATE',
            0x04: 'OPTIONAL FEATURE ENABLED',
            0xFF: 'DIAGNOSTICS',
        }),
    },
    'gateway': {
        7: with_ftl({
            0x00: 'IDENTIFICATION',
            0x01: 'FEATURE ENABLE',
            0x02: 'TIME/DATE REQUEST',
            0xFF: 'DIAGNOSTICS',
        }),
    },
    'display': {
        7: {
            0x00: 'IDENTIFICATION',
        },
    },
    'bill': {
        7: with_ftl({
            0x00: 'LEVEL 1 IDENTIFICATION WITHOUT OPTION BITS',
            0x01: 'LEVEL 2+ FEATURE ENABLE',
            0x02: 'LEVEL 2+ IDENTIFICATION WITH OPTION BITS',
            0x03: 'RECYCLER SETUP',
            0x04: 'RECYCLER ENABLE',
            0x05: 'BILL DISPENSE STATUS',
            0x06: 'DISPENSE BILL',
            0x07: 'DISPENSE VALUE',
            0x08: 'PAYOUT STATUS',
            0x09: 'PAYOUT VALUE POLL',
            0x0A: 'PAYOUT CANCEL',
            0xFF: 'DIAGNOSTICS',
        }),
    },
    'usd': {
        4: {
            0x00: 'FUNDS AVAILABLE',
            0x01: 'ITEM PRICE SET',
        },
        5: {
            0x00: 'DISABLE',
            0x01: 'ENABLE',
        },
        7: with_ftl({
            0x00: 'REQUEST ID',
            0x01: 'FEATURE ENABLE',
            0xFF: 'DIAGNOSTICS',
        }),
    },
    'dispenser': {
        7: with_ftl({
            0x00: 'IDENTIFICATION',
            0x01: 'FEATURE ENABLE',
            0x02: 'PAYOUT',
            0x03: 'PAYOUT STATUS',
            0x04: 'PAYOUT VALUE POLL',
            0xFF: 'DIAGNOSTICS',
        }),
    },
    'age': {
        7: {
            0x00: 'REQUEST ID',
            0xFF: 'DIAGNOSTICS',
        },
    },
})

def peripheral(address):
    '''Return (name, command set) for an address byte. Reserved and
    experimental ranges have no command set.'''
    base = address & ADDRESS_MASK
    if base in PERIPHERALS:
        return PERIPHERALS[base]
    for lo, hi, name in RESERVED:
        if lo <= base <= hi:
            return (name, None)
    return ('Unknown', None)

def peripheral_name(address):
    return peripheral(address)[0]

def command_name(address):
    kind = peripheral(address)[1]
    cmd = address & COMMAND_MASK
    if kind is None:
        return 'CMD {:d}'.format(cmd)
    return COMMANDS[kind].get(cmd, 'UNKNOWN CMD {:d}'.format(cmd))

def has_subcommands(address):
    kind = peripheral(address)[1]
    return kind in SUBCOMMANDS and (address & COMMAND_MASK) in SUBCOMMANDS[kind]

def subcommand_name(address, sub):
    '''Name of sub-command byte 'sub' following 'address', or None when
    the addressed command takes no sub-command.'''
    if not has_subcommands(address):
        return None
    table = SUBCOMMANDS[peripheral(address)[1]][address & COMMAND_MASK]
    return table.get(sub, 'UNKNOWN 0x{:02X}'.format(sub))
