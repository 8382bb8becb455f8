# SPDX-License-Identifier: MIT

import pytest

from sdhcp.address import (Address, Subnet, parse_address, subnet_mask,
	network_matches, check_disjoint)
from sdhcp.error import ErrorKind, SDHCPError


class TestAddress:

	def test_render(self):
		address = Address(0, 10, 1024, 65535)
		assert str(address) == '0.10.1024.65535'
		assert address.to_dotted() == '0.10.1024.65535'
		assert address.to_hex() == '0:a:400:ffff'

	def test_parse_dotted(self):
		assert parse_address('0.10.1024.65535') == Address(0, 10, 1024, 65535)

	def test_parse_hex(self):
		assert parse_address('0:a:400:FFFF') == Address(0, 10, 1024, 65535)

	@pytest.mark.parametrize('address', [
		Address(0, 0, 0, 0),
		Address(65535, 65535, 65535, 65535),
		Address(1, 2, 3, 4),
		Address(0, 10, 1024, 0),
	])
	def test_round_trip(self, address):
		assert parse_address(str(address)) == address
		assert parse_address(address.to_hex()) == address
		assert Address.from_int(int(address)) == address

	@pytest.mark.parametrize('text', [
		'1.2.3',
		'1.2.3.4.5',
		'1.2.3.65536',
		'1.2.-3.4',
		'1.2. 3.4',
		'a.b.c.d',
		'',
		'1:2:3:10000',
		'1' * 5000 + '.0.0.0',
	])
	def test_parse_invalid(self, text):
		with pytest.raises(SDHCPError) as excinfo:
			parse_address(text)
		assert excinfo.value.kind is ErrorKind.FORMAT_ERROR

	def test_segment_range(self):
		with pytest.raises(SDHCPError):
			Address(0, 0, 0, 65536)
		with pytest.raises(SDHCPError):
			Address(-1, 0, 0, 0)
		with pytest.raises(SDHCPError):
			Address(True, 0, 0, 0)

	def test_int_conversion(self):
		assert int(Address(0, 0, 1, 2)) == (1 << 16) | 2
		assert Address.from_int(2**64 - 1) == Address(65535, 65535, 65535,
			65535)
		with pytest.raises(SDHCPError):
			Address.from_int(2**64)

	def test_ordering_follows_value(self):
		assert Address(0, 1, 0, 0) > Address(0, 0, 65535, 65535)

	def test_from_segments(self):
		assert Address.from_segments([1, 2, 3, 4]) == Address(1, 2, 3, 4)
		with pytest.raises(SDHCPError):
			Address.from_segments([1, 2, 3])
		with pytest.raises(SDHCPError):
			Address.from_segments('1.2.3.4')


class TestSubnetMask:

	def test_edges(self):
		assert subnet_mask(0) == Address(0, 0, 0, 0)
		assert subnet_mask(64) == Address(0xFFFF, 0xFFFF, 0xFFFF, 0xFFFF)

	def test_partial_segment(self):
		assert subnet_mask(48) == Address(0xFFFF, 0xFFFF, 0xFFFF, 0)
		assert subnet_mask(17) == Address(0xFFFF, 0x8000, 0, 0)
		assert subnet_mask(4) == Address(0xF000, 0, 0, 0)

	@pytest.mark.parametrize('prefix_length', range(65))
	def test_leading_ones(self, prefix_length):
		mask = subnet_mask(prefix_length)
		assert mask == subnet_mask(prefix_length)
		value = int(mask)
		assert bin(value).count('1') == prefix_length
		assert value == ((1 << prefix_length) - 1) << (64 - prefix_length)

	@pytest.mark.parametrize('prefix_length', [-1, 65, 1.5, None])
	def test_invalid(self, prefix_length):
		with pytest.raises(SDHCPError):
			subnet_mask(prefix_length)


class TestSubnet:

	def test_defaults_pool_to_host_space(self):
		subnet = Subnet(Address(0, 10, 1024, 0), 48)
		assert subnet.pool_start == 0
		assert subnet.pool_end == 65535
		assert subnet.host_bits == 16

	def test_accepts_text_and_lists(self):
		assert Subnet('0.10.1024.0', 48) == Subnet([0, 10, 1024, 0], 48)

	def test_pool_must_fit(self):
		with pytest.raises(ValueError):
			Subnet(Address(0, 10, 1024, 0), 48, 0, 65536)
		with pytest.raises(ValueError):
			Subnet(Address(0, 10, 1024, 0), 48, 10, 5)

	def test_membership(self, subnet):
		assert Address(0, 10, 1024, 7) in subnet
		assert Address(0, 10, 1025, 7) not in subnet
		assert network_matches(Address(0, 10, 1024, 65535), subnet)

	def test_host_value_and_compose(self, subnet):
		assert subnet.host_value(Address(0, 10, 1024, 7)) == 7
		assert subnet.compose(7) == Address(0, 10, 1024, 7)
		with pytest.raises(ValueError):
			subnet.host_value(Address(0, 11, 0, 0))
		with pytest.raises(ValueError):
			subnet.compose(65536)

	def test_host_bits_in_base_are_ignored(self):
		subnet = Subnet(Address(0, 10, 1024, 99), 48, 5, 10)
		assert subnet.network == Address(0, 10, 1024, 0)
		assert subnet.first == Address(0, 10, 1024, 5)
		assert subnet.last == Address(0, 10, 1024, 10)
		assert str(subnet) == '0.10.1024.0/48'

	def test_whole_space(self):
		subnet = Subnet(Address(0, 0, 0, 0), 0)
		assert subnet.pool_end == 2**64 - 1
		assert Address(1, 2, 3, 4) in subnet

	def test_disjoint(self):
		check_disjoint([
			Subnet(Address(0, 10, 1024, 0), 48),
			Subnet(Address(0, 10, 1025, 0), 48),
			Subnet(Address(0, 11, 0, 0), 32),
		])
		with pytest.raises(ValueError):
			check_disjoint([
				Subnet(Address(0, 10, 0, 0), 32),
				Subnet(Address(0, 10, 1024, 0), 48),
			])
