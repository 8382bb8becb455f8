# SPDX-License-Identifier: MIT

__all__ = ['DEFAULT_LEASE_TIME', 'DEFAULT_PREFIX_LENGTH', 'DEFAULT_SERVER_PORT',
	'DEFAULT_RESERVATION_TTL', 'DEFAULT_SWEEP_INTERVAL', 'ServerConfig']

from dataclasses import dataclass

from .address import ADDRESS_BITS, Subnet, check_disjoint

DEFAULT_LEASE_TIME = 3600
DEFAULT_PREFIX_LENGTH = 48
DEFAULT_SERVER_PORT = 67
DEFAULT_RESERVATION_TTL = 30
DEFAULT_SWEEP_INTERVAL = 5


@dataclass(frozen=True)
class ServerConfig:
	"""Everything a server is told at construction; never changes afterwards

	`default_subnet` is an index into `subnets`; it is the subnet handed out
	from when no subnet has the prefix length a client asks for.
	`max_lease_time` caps the lease time a client may ask for and defaults to
	`lease_time`. `port` only means something to the transport.
	"""
	server_id: str
	subnets: tuple
	lease_time: int = DEFAULT_LEASE_TIME
	max_lease_time: int = None
	default_prefix_length: int = DEFAULT_PREFIX_LENGTH
	default_subnet: int = 0
	port: int = DEFAULT_SERVER_PORT
	reservation_ttl: float = DEFAULT_RESERVATION_TTL
	sweep_interval: float = DEFAULT_SWEEP_INTERVAL

	def __post_init__(self):
		subnets = tuple(self.subnets)
		object.__setattr__(self, 'subnets', subnets)

		if not isinstance(self.server_id, str) or not self.server_id:
			raise ValueError('server_id must be a non-empty string')
		if not subnets:
			raise ValueError('at least one subnet must be configured')
		for subnet in subnets:
			if not isinstance(subnet, Subnet):
				raise ValueError('not a subnet: %r' % (subnet,))
		check_disjoint(subnets)
		if self.default_subnet not in range(len(subnets)):
			raise ValueError('default subnet index %r out of range'
				% self.default_subnet)
		if self.default_prefix_length not in range(ADDRESS_BITS + 1):
			raise ValueError('`%r` not in range(%d)'
				% (self.default_prefix_length, ADDRESS_BITS + 1))
		if self.lease_time <= 0:
			raise ValueError('lease time must be positive: %r'
				% self.lease_time)
		if self.max_lease_time is None:
			object.__setattr__(self, 'max_lease_time', self.lease_time)
		elif self.max_lease_time <= 0:
			raise ValueError('maximum lease time must be positive: %r'
				% self.max_lease_time)
		if self.reservation_ttl <= 0:
			raise ValueError('reservation ttl must be positive: %r'
				% self.reservation_ttl)
		if self.sweep_interval <= 0:
			raise ValueError('sweep interval must be positive: %r'
				% self.sweep_interval)
		if self.port not in range(0x10000):
			raise ValueError('`%r` not in range(0x10000)' % self.port)

	@property
	def default(self):
		return self.subnets[self.default_subnet]

# vim:set ft=python ts=4 sw=4 ai noet cc=80:
