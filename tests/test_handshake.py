# SPDX-License-Identifier: MIT

import pytest

from sdhcp.address import Address, Subnet
from sdhcp.config import ServerConfig
from sdhcp.handshake import ClientState, Handshake
from sdhcp.leases import LeaseState
from sdhcp.message import Discover, Request, Release, Offer, Ack, Nack

A0 = Address(0, 10, 1024, 0)
A1 = Address(0, 10, 1024, 1)


@pytest.fixture
def handshake(logger, config, clock):
	return Handshake(logger, config, clock=clock)


def bind(handshake, client_id, **kwargs):
	offer = handshake.discover(Discover(client_id, **kwargs))
	return handshake.request(Request(client_id, offer.server_id,
		offer.offered_address, offer.prefix_length))


class TestDiscover:

	def test_offer(self, handshake):
		offer = handshake.discover(Discover('C1', desired_prefix_length=48))
		assert offer == Offer('C1', 'S1', A0, 48, 3600)
		assert handshake.state('C1') is ClientState.OFFERED
		lease = handshake.leases.get(A0)
		assert lease.client_id == 'C1'
		assert lease.state is LeaseState.TENTATIVE

	def test_offered_address_is_not_offered_again(self, handshake):
		handshake.discover(Discover('C1'))
		assert handshake.discover(Discover('C2')).offered_address == A1

	def test_superseding_discover(self, handshake):
		handshake.discover(Discover('C1'))
		offer = handshake.discover(Discover('C1'))
		assert offer.offered_address == A0
		assert len(handshake.leases) == 1
		assert handshake.transactions['C1'].retry_count == 1

	def test_exhausted_pool_is_silent(self, logger, clock):
		subnet = Subnet(Address(0, 10, 1024, 0), 48, 0, 0)
		config = ServerConfig(server_id='S1', subnets=(subnet,))
		handshake = Handshake(logger, config, clock=clock)
		assert handshake.discover(Discover('C1')) is not None
		assert handshake.discover(Discover('C2')) is None
		assert handshake.state('C2') is ClientState.IDLE

	def test_bound_client_gets_same_address(self, handshake):
		bind(handshake, 'C1')
		bind(handshake, 'C2')
		offer = handshake.discover(Discover('C1'))
		assert offer.offered_address == A0
		assert handshake.leases.get(A0).state is LeaseState.COMMITTED
		assert handshake.state('C1') is ClientState.BOUND

	def test_reclaimed_binding_is_replaced(self, handshake, clock):
		bind(handshake, 'C1')
		clock.advance(3600)
		handshake.handle_expirations()
		handshake.discover(Discover('C2'))
		offer = handshake.discover(Discover('C1'))
		assert offer.offered_address == A1

	def test_requested_lease_time(self, logger, subnet, clock):
		config = ServerConfig(server_id='S1', subnets=(subnet,),
			max_lease_time=7200)
		handshake = Handshake(logger, config, clock=clock)
		assert handshake.discover(
			Discover('C1', requested_lease_time=600)).lease_time == 600
		assert handshake.discover(
			Discover('C2', requested_lease_time=10**6)).lease_time == 7200
		assert handshake.discover(Discover('C3')).lease_time == 3600


class TestRequest:

	def test_ack(self, handshake, clock):
		ack = bind(handshake, 'C1', desired_prefix_length=48)
		assert ack == Ack('C1', 'S1', A0, 48, 3600)
		assert handshake.state('C1') is ClientState.BOUND
		lease = handshake.leases.get(A0)
		assert lease.state is LeaseState.COMMITTED
		assert lease.expiry == clock.now + 3600

	def test_scenario(self, handshake):
		offer = handshake.discover(Discover('C1', desired_prefix_length=48))
		assert offer.offered_address == A0
		assert offer.lease_time == 3600
		ack = handshake.request(Request('C1', 'S1', A0, 48))
		assert isinstance(ack, Ack)
		offer = handshake.discover(Discover('C2'))
		assert offer.offered_address == A1

	def test_repeated_request_renews(self, handshake, clock):
		bind(handshake, 'C1')
		first = handshake.leases.get(A0).expiry
		clock.advance(100)
		ack = handshake.request(Request('C1', 'S1', A0, 48))
		assert isinstance(ack, Ack)
		assert handshake.leases.get(A0).expiry == first + 100

	def test_conflict(self, handshake):
		bind(handshake, 'C1')
		before = handshake.leases.get(A0)
		nack = handshake.request(Request('C2', 'S1', A0, 48))
		assert isinstance(nack, Nack)
		assert nack.server_id == 'S1'
		assert 'NotOwner' in nack.reason
		assert handshake.leases.get(A0) == before

	def test_request_for_reservation_of_other_client(self, handshake):
		handshake.discover(Discover('C1'))
		nack = handshake.request(Request('C2', 'S1', A0, 48))
		assert isinstance(nack, Nack)
		assert handshake.state('C1') is ClientState.OFFERED

	def test_request_never_offered(self, handshake):
		handshake.discover(Discover('C1'))
		nack = handshake.request(Request('C1', 'S1', A1, 48))
		assert isinstance(nack, Nack)
		assert handshake.state('C1') is ClientState.OFFERED
		assert handshake.leases.get(A0).client_id == 'C1'
		assert handshake.leases.get(A1) is None

	def test_stale_request_keeps_newer_offer(self, handshake, clock):
		handshake.discover(Discover('C1'))
		clock.advance(31)
		handshake.handle_expirations()
		handshake.discover(Discover('C2'))
		offer = handshake.discover(Discover('C1'))
		assert offer.offered_address == A1
		nack = handshake.request(Request('C1', 'S1', A0, 48))
		assert isinstance(nack, Nack)
		assert handshake.transactions['C1'].offered_address == A1
		assert handshake.leases.get(A1).client_id == 'C1'
		assert handshake.state('C1') is ClientState.OFFERED
		ack = handshake.request(Request('C1', 'S1', A1, 48))
		assert ack == Ack('C1', 'S1', A1, 48, 3600)

	def test_other_server_is_ignored(self, handshake):
		handshake.discover(Discover('C1'))
		assert handshake.request(Request('C1', 'S2', A0, 48)) is None
		assert handshake.state('C1') is ClientState.OFFERED

	def test_outside_subnet(self, handshake):
		nack = handshake.request(Request('C1', 'S1', Address(0, 9, 0, 0), 48))
		assert isinstance(nack, Nack)

	def test_wrong_prefix_length(self, handshake):
		handshake.discover(Discover('C1'))
		nack = handshake.request(Request('C1', 'S1', A0, 32))
		assert isinstance(nack, Nack)
		assert handshake.state('C1') is ClientState.IDLE

	def test_timeout(self, handshake, clock):
		handshake.discover(Discover('C1'))
		clock.advance(31)
		assert handshake.handle_expirations() == {A0}
		assert handshake.state('C1') is ClientState.IDLE
		assert 'C1' not in handshake.transactions
		assert handshake.discover(Discover('C2')).offered_address == A0
		nack = handshake.request(Request('C1', 'S1', A0, 48))
		assert isinstance(nack, Nack)

	def test_lease_expiry(self, handshake, clock):
		bind(handshake, 'C1')
		clock.advance(3599)
		assert handshake.handle_expirations() == set()
		clock.advance(1)
		assert handshake.handle_expirations() == {A0}
		assert handshake.state('C1') is ClientState.IDLE

	def test_negotiated_lease_time(self, handshake, clock):
		ack = bind(handshake, 'C1', requested_lease_time=60)
		assert ack.lease_time == 60
		assert handshake.leases.get(A0).expiry == clock.now + 60


class TestRelease:

	def test_release(self, handshake):
		bind(handshake, 'C1')
		assert handshake.release(Release('C1', 'S1', A0)) is None
		assert handshake.leases.get(A0) is None
		assert handshake.state('C1') is ClientState.IDLE

	def test_release_of_other_client(self, handshake):
		bind(handshake, 'C1')
		handshake.release(Release('C2', 'S1', A0))
		assert handshake.leases.get(A0).client_id == 'C1'

	def test_release_for_other_server(self, handshake):
		bind(handshake, 'C1')
		handshake.release(Release('C1', 'S2', A0))
		assert handshake.leases.get(A0) is not None
