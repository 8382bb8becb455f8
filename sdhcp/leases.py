# SPDX-License-Identifier: MIT

__all__ = ['LeaseState', 'Lease', 'LeaseTable']

import enum
import threading
from dataclasses import dataclass, replace
from time import monotonic

from .address import Address, check_disjoint
from .error import ErrorKind, SDHCPError


@enum.unique
class LeaseState(enum.Enum):
	TENTATIVE = 'Tentative'
	COMMITTED = 'Committed'


@dataclass(frozen=True)
class Lease:
	client_id: str
	address: Address
	prefix_length: int
	expiry: float
	state: LeaseState = LeaseState.TENTATIVE

	def is_expired(self, now):
		return self.expiry <= now


class LeaseTable:
	"""Authoritative address -> lease mapping for a set of disjoint subnets

	Every subnet has its own reentrant lock; each mutating operation holds
	the lock of the subnet it touches and never more than one at a time.
	Callers that must make several calls atomically (allocate, then reserve)
	hold `lock(subnet)` around them.

	An expired lease is logically absent: lookups reclaim it on sight, and
	`sweep_expired()` reclaims the rest. `on_reserve` and `on_release` are
	called with the address whenever a lease appears or disappears.
	"""

	def __init__(self, subnets, clock=monotonic):
		self.subnets = tuple(subnets)
		check_disjoint(self.subnets)
		self.clock = clock
		self.leases = {subnet: {} for subnet in self.subnets}
		self.locks = {subnet: threading.RLock() for subnet in self.subnets}
		self.on_reserve = []
		self.on_release = []

	def subnet_for(self, address):
		for subnet in self.subnets:
			if address in subnet:
				return subnet
		return None

	def lock(self, subnet):
		return self.locks[subnet]

	def _subnet_of(self, address, kind=None):
		subnet = self.subnet_for(address)
		if subnet is None and kind is None:
			raise ValueError('%s is not in any owned subnet' % (address,))
		if subnet is None:
			raise SDHCPError(kind,
				'%s is not in any owned subnet' % (address,))
		return subnet

	def _add(self, subnet, lease):
		self.leases[subnet][lease.address] = lease
		for method in self.on_reserve:
			method(lease.address)

	def _remove(self, subnet, address):
		lease = self.leases[subnet].pop(address, None)
		if lease is not None:
			for method in self.on_release:
				method(address)
		return lease

	def _active(self, subnet, address, now):
		lease = self.leases[subnet].get(address)
		if lease is not None and lease.is_expired(now):
			self._remove(subnet, address)
			return None
		return lease

	def get(self, address):
		subnet = self.subnet_for(address)
		if subnet is None:
			return None
		with self.locks[subnet]:
			return self._active(subnet, address, self.clock())

	def is_claimed(self, address):
		return self.get(address) is not None

	def leases_of(self, client_id, state=None):
		result = []
		for subnet in self.subnets:
			with self.locks[subnet]:
				now = self.clock()
				candidates = [
					lease.address
					for lease
					in self.leases[subnet].values()
					if lease.client_id == client_id
				]
				for address in candidates:
					lease = self._active(subnet, address, now)
					if lease is None:
						continue
					if state is None or lease.state is state:
						result.append(lease)
		return result

	def reserve_tentative(self, client_id, address, prefix_length, ttl):
		subnet = self._subnet_of(address)
		with self.locks[subnet]:
			now = self.clock()
			lease = self._active(subnet, address, now)
			if lease is not None and lease.client_id != client_id:
				raise SDHCPError(ErrorKind.ADDRESS_IN_USE,
					'%s is leased to %r' % (address, lease.client_id))
			if lease is not None and lease.state is LeaseState.COMMITTED:
				# NOTE: a bound client keeps its committed lease as it is
				return lease

			stale = [
				other.address
				for other
				in self.leases[subnet].values()
				if other.client_id == client_id
				and other.state is LeaseState.TENTATIVE
				and other.address != address
			]
			for other_address in stale:
				self._remove(subnet, other_address)

			lease = Lease(client_id, address, prefix_length, now + ttl,
				LeaseState.TENTATIVE)
			self._add(subnet, lease)
			return lease

	def commit(self, client_id, address, lease_time):
		subnet = self._subnet_of(address, ErrorKind.NO_SUCH_RESERVATION)
		with self.locks[subnet]:
			now = self.clock()
			lease = self._active(subnet, address, now)
			if (lease is None
				or lease.client_id != client_id
				or lease.state is not LeaseState.TENTATIVE):
				raise SDHCPError(ErrorKind.NO_SUCH_RESERVATION,
					'%r holds no reservation for %s' % (client_id, address))

			lease = replace(lease, expiry=now + lease_time,
				state=LeaseState.COMMITTED)
			self.leases[subnet][address] = lease
			return lease

	def renew(self, client_id, address, lease_time):
		subnet = self._subnet_of(address, ErrorKind.NO_SUCH_RESERVATION)
		with self.locks[subnet]:
			now = self.clock()
			lease = self._active(subnet, address, now)
			if lease is None:
				raise SDHCPError(ErrorKind.NO_SUCH_RESERVATION,
					'%s is not leased' % (address,))
			if lease.client_id != client_id:
				raise SDHCPError(ErrorKind.NOT_OWNER,
					'%s is leased to %r, not %r'
					% (address, lease.client_id, client_id))
			if lease.state is not LeaseState.COMMITTED:
				raise SDHCPError(ErrorKind.NO_SUCH_RESERVATION,
					'%s is only reserved for %r' % (address, client_id))

			lease = replace(lease, expiry=now + lease_time)
			self.leases[subnet][address] = lease
			return lease

	def release(self, address):
		subnet = self.subnet_for(address)
		if subnet is None:
			return None
		with self.locks[subnet]:
			return self._remove(subnet, address)

	def release_tentative(self, client_id):
		released = set()
		for subnet in self.subnets:
			with self.locks[subnet]:
				stale = [
					lease.address
					for lease
					in self.leases[subnet].values()
					if lease.client_id == client_id
					and lease.state is LeaseState.TENTATIVE
				]
				for address in stale:
					self._remove(subnet, address)
				released.update(stale)
		return released

	def sweep_subnet(self, subnet, now=None):
		if now is None:
			now = self.clock()
		with self.locks[subnet]:
			expired = [
				address
				for address, lease
				in self.leases[subnet].items()
				if lease.is_expired(now)
			]
			for address in expired:
				self._remove(subnet, address)
		return set(expired)

	def sweep_expired(self, now=None):
		if now is None:
			now = self.clock()
		released = set()
		for subnet in self.subnets:
			released.update(self.sweep_subnet(subnet, now))
		return released

	def __len__(self):
		return sum(len(leases) for leases in self.leases.values())

	def __iter__(self):
		snapshot = []
		for subnet in self.subnets:
			with self.locks[subnet]:
				snapshot.extend(self.leases[subnet].values())
		return iter(snapshot)

# vim:set ft=python ts=4 sw=4 ai noet cc=80:
