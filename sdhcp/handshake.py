# SPDX-License-Identifier: MIT

__all__ = ['ClientState', 'Transaction', 'Handshake']

import enum
import threading
from dataclasses import dataclass
from time import monotonic

from .address import Address
from .error import ErrorKind, SDHCPError
from .leases import LeaseState, LeaseTable
from .message import Offer, Ack, Nack
from .pool import SubnetPool

# NOTE: these become a Nack; anything else a handler raises is a server fault
NACK_ERRORS = (
	ErrorKind.NO_SUCH_RESERVATION,
	ErrorKind.NOT_OWNER,
	ErrorKind.ADDRESS_IN_USE,
)


@enum.unique
class ClientState(enum.Enum):
	IDLE = 'Idle'
	OFFERED = 'Offered'
	BOUND = 'Bound'


@dataclass
class Transaction:
	client_id: str
	server_id: str
	offered_address: Address
	prefix_length: int
	lease_time: int
	created_at: float
	retry_count: int = 0


class Handshake:
	"""Discover -> Offer -> Request -> Ack/Nack, one conversation per client

	A client's state is not stored; it is read off the open transactions and
	the lease table, so an expired lease or reservation puts the client back
	in IDLE without any bookkeeping here.
	"""

	def __init__(self, logger, config, leases=None, pool=None,
		clock=monotonic):
		self.logger = logger
		self.config = config
		self.clock = clock
		if leases is None:
			leases = LeaseTable(config.subnets, clock=clock)
		self.leases = leases
		if pool is None:
			pool = SubnetPool(leases, default_subnet=config.default,
				default_prefix_length=config.default_prefix_length)
		self.pool = pool
		self.transactions = {}
		self.transactions_lock = threading.Lock()

	@property
	def server_id(self):
		return self.config.server_id

	def state(self, client_id):
		if self.leases.leases_of(client_id, LeaseState.COMMITTED):
			return ClientState.BOUND
		with self.transactions_lock:
			transaction = self.transactions.get(client_id)
		if transaction is not None:
			lease = self.leases.get(transaction.offered_address)
			if lease is not None and lease.client_id == client_id:
				return ClientState.OFFERED
		return ClientState.IDLE

	def lease_time_for(self, requested_lease_time):
		if not requested_lease_time:
			return self.config.lease_time
		return min(requested_lease_time, self.config.max_lease_time)

	def reserve(self, client_id, desired_prefix_length):
		for subnet in self.pool.candidates(desired_prefix_length):
			with self.leases.lock(subnet):
				try:
					address = self.pool.allocate_from(subnet)
				except SDHCPError as e:
					if e.kind is not ErrorKind.POOL_EXHAUSTED:
						raise
					continue
				return self.leases.reserve_tentative(client_id, address,
					subnet.prefix_length, self.config.reservation_ttl)
		return None

	def discover(self, message):
		client_id = message.client_id

		with self.transactions_lock:
			previous = self.transactions.pop(client_id, None)
		if previous is not None:
			self.logger.debug('%s - superseding offer of %s', client_id,
				previous.offered_address)
		self.leases.release_tentative(client_id)

		bound = self.leases.leases_of(client_id, LeaseState.COMMITTED)
		if bound:
			lease = bound[0]
		else:
			lease = self.reserve(client_id, message.desired_prefix_length)
		if lease is None:
			self.logger.warning('%s - no free address for prefix length %r',
				client_id, message.desired_prefix_length)
			return None

		lease_time = self.lease_time_for(message.requested_lease_time)
		transaction = Transaction(
			client_id=client_id,
			server_id=self.server_id,
			offered_address=lease.address,
			prefix_length=lease.prefix_length,
			lease_time=lease_time,
			created_at=self.clock(),
			retry_count=0 if previous is None else previous.retry_count + 1
		)
		with self.transactions_lock:
			self.transactions[client_id] = transaction

		return Offer(
			client_id=client_id,
			server_id=self.server_id,
			offered_address=lease.address,
			prefix_length=lease.prefix_length,
			lease_time=lease_time
		)

	def request(self, message):
		client_id = message.client_id
		address = message.requested_address

		if message.server_id != self.server_id:
			self.logger.debug('%s - request is for server %r, ignoring',
				client_id, message.server_id)
			return None

		subnet = self.pool.subnet_for(address)
		if subnet is None:
			reason = '%s is not in any subnet of this server' % (address,)
			return self.nack(client_id, reason, address)
		if message.prefix_length != subnet.prefix_length:
			return self.nack(client_id,
				'prefix length %r does not match %s'
				% (message.prefix_length, subnet), address)

		with self.transactions_lock:
			transaction = self.transactions.get(client_id)
		if transaction is not None and transaction.offered_address == address:
			lease_time = transaction.lease_time
		else:
			lease_time = self.config.lease_time

		try:
			with self.leases.lock(subnet):
				lease = self.leases.get(address)
				if lease is not None and lease.state is LeaseState.COMMITTED:
					lease = self.leases.renew(client_id, address, lease_time)
				else:
					lease = self.leases.commit(client_id, address, lease_time)
		except SDHCPError as e:
			if e.kind not in NACK_ERRORS:
				raise
			return self.nack(client_id, str(e), address)

		with self.transactions_lock:
			transaction = self.transactions.pop(client_id, None)
		if transaction is not None and transaction.offered_address != address:
			self.drop_offer(transaction)

		return Ack(
			client_id=client_id,
			server_id=self.server_id,
			assigned_address=lease.address,
			prefix_length=lease.prefix_length,
			lease_time=lease_time
		)

	def release(self, message):
		client_id = message.client_id
		address = message.released_address

		if message.server_id != self.server_id:
			return None

		subnet = self.pool.subnet_for(address)
		if subnet is None:
			return None
		with self.leases.lock(subnet):
			lease = self.leases.get(address)
			if lease is None or lease.client_id != client_id:
				self.logger.debug('%s - does not hold %s, ignoring release',
					client_id, address)
				return None
			self.leases.release(address)

		with self.transactions_lock:
			self.transactions.pop(client_id, None)
		self.logger.debug('%s - released %s', client_id, address)
		return None

	def drop_offer(self, transaction):
		address = transaction.offered_address
		subnet = self.pool.subnet_for(address)
		if subnet is None:
			return
		with self.leases.lock(subnet):
			lease = self.leases.get(address)
			if (lease is not None
				and lease.client_id == transaction.client_id
				and lease.state is LeaseState.TENTATIVE):
				self.leases.release(address)

	def nack(self, client_id, reason, address=None):
		# a Nack only ends the transaction whose offer the Request named
		with self.transactions_lock:
			transaction = self.transactions.get(client_id)
			if transaction is not None and (address is None
				or transaction.offered_address == address):
				del self.transactions[client_id]
			else:
				transaction = None
		if transaction is not None:
			self.drop_offer(transaction)
		self.logger.debug('%s - refusing request: %s', client_id, reason)
		return Nack(client_id=client_id, server_id=self.server_id,
			reason=reason)

	def handle_expirations(self, now=None):
		if now is None:
			now = self.clock()
		released = self.leases.sweep_expired(now)

		with self.transactions_lock:
			stale = [
				client_id
				for client_id, transaction
				in self.transactions.items()
				if transaction.created_at + self.config.reservation_ttl <= now
			]
			for client_id in stale:
				del self.transactions[client_id]

		for client_id in stale:
			self.logger.debug('%s - offer timed out', client_id)
		for address in sorted(released):
			self.logger.debug('%s - lease expired', address)
		return released

# vim:set ft=python ts=4 sw=4 ai noet cc=80:
