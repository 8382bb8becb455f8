# SPDX-License-Identifier: MIT

__all__ = ['SubnetPool']

from .address_range import address_range
from .config import DEFAULT_PREFIX_LENGTH
from .error import ErrorKind, SDHCPError


class SubnetPool:
	"""Hands out the lowest free host value of the configured subnets

	Whether a host value is free is always answered by the lease table; the
	pool only remembers, per subnet, a scan hint below which every host value
	is known to be claimed. The lease table moves the hint through the
	`reserve()` and `release()` hooks; expired leases of a subnet are reclaimed
	before it is scanned.
	"""

	def __init__(self, leases, default_subnet=None,
		default_prefix_length=DEFAULT_PREFIX_LENGTH):
		self.leases = leases
		self.subnets = leases.subnets
		if default_subnet is None:
			default_subnet = self.subnets[0]
		if default_subnet not in self.subnets:
			raise ValueError('default subnet %s is not configured'
				% default_subnet)
		self.default_subnet = default_subnet
		self.default_prefix_length = default_prefix_length

		self.ranges = {
			subnet: address_range(subnet.first, subnet.last)
			for subnet
			in self.subnets
		}
		self.hints = {subnet: 0 for subnet in self.subnets}

		leases.on_reserve.append(self.reserve)
		leases.on_release.append(self.release)

	def subnet_for(self, address):
		return self.leases.subnet_for(address)

	def candidates(self, desired_prefix_length=None):
		if desired_prefix_length is None:
			desired_prefix_length = self.default_prefix_length
		result = [
			subnet
			for subnet
			in self.subnets
			if subnet.prefix_length == desired_prefix_length
		]
		if self.default_subnet not in result:
			result.append(self.default_subnet)
		return result

	def allocate(self, desired_prefix_length=None):
		for subnet in self.candidates(desired_prefix_length):
			with self.leases.lock(subnet):
				try:
					return self.allocate_from(subnet)
				except SDHCPError as e:
					if e.kind is not ErrorKind.POOL_EXHAUSTED:
						raise
		raise SDHCPError(ErrorKind.POOL_EXHAUSTED,
			'no free address for prefix length %r' % desired_prefix_length)

	def allocate_from(self, subnet):
		# the hint only accounts for active leases
		self.leases.sweep_subnet(subnet)
		hosts = self.ranges[subnet]
		for address in hosts[self.hints[subnet]:]:
			if not self.leases.is_claimed(address):
				return address
		raise SDHCPError(ErrorKind.POOL_EXHAUSTED,
			'no free address in %s' % subnet)

	def reserve(self, address):
		subnet = self.subnet_for(address)
		if subnet is None or address not in self.ranges[subnet]:
			return
		hosts = self.ranges[subnet]
		index = hosts.index(address)
		if index != self.hints[subnet]:
			return
		while index < hosts.size and self.leases.is_claimed(hosts[index]):
			index += 1
		self.hints[subnet] = index

	def release(self, address):
		subnet = self.subnet_for(address)
		if subnet is None or address not in self.ranges[subnet]:
			return
		index = self.ranges[subnet].index(address)
		self.hints[subnet] = min(self.hints[subnet], index)

# vim:set ft=python ts=4 sw=4 ai noet cc=80:
