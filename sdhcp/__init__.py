"""SDHCP

Simplified DHCP: 64-bit addresses in four 16-bit segments, handed out over a
Discover/Offer/Request/Ack handshake

"""

__version__ = '0.1.0'
# SPDX-License-Identifier: MIT
__license__ = 'MIT'

try:
	from .error import *
	from .error import __all__ as error_all
	from .address import *
	from .address import __all__ as address_all
	from .address_range import address_range
	from .config import *
	from .config import __all__ as config_all
	from .leases import *
	from .leases import __all__ as leases_all
	from .pool import SubnetPool
	from .message import *
	from .message import __all__ as message_all
	from .handshake import *
	from .handshake import __all__ as handshake_all
	from .transport import *
	from .transport import __all__ as transport_all
	from .server import *
	from .server import __all__ as server_all
except ImportError as e:
	print('Could not import SDHCP: %r' % e)
	raise

__all__ = [
	*error_all,
	*address_all,
	'address_range',
	*config_all,
	*leases_all,
	'SubnetPool',
	*message_all,
	*handshake_all,
	*transport_all,
	*server_all,
]

# vim:set ft=python ts=4 sw=4 ai noet cc=80:
