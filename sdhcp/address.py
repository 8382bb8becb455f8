# SPDX-License-Identifier: MIT

__all__ = ['SEGMENT_MAX', 'ADDRESS_BITS', 'Address', 'Subnet',
	'parse_address', 'subnet_mask', 'network_matches', 'check_disjoint']

from collections import namedtuple
from dataclasses import dataclass
from itertools import combinations
from re import compile as Regex

from .error import ErrorKind, SDHCPError

SEGMENT_BITS = 16
SEGMENT_COUNT = 4
SEGMENT_MAX = (1 << SEGMENT_BITS) - 1
ADDRESS_BITS = SEGMENT_BITS*SEGMENT_COUNT
ADDRESS_MAX = (1 << ADDRESS_BITS) - 1

DOTTED_FORM = Regex(r'([0-9]+)\.([0-9]+)\.([0-9]+)\.([0-9]+)')
HEX_FORM = Regex(r'([0-9a-fA-F]+):([0-9a-fA-F]+):'
	r'([0-9a-fA-F]+):([0-9a-fA-F]+)')


def check_segment(value):
	# NOTE: bool is an int subclass, but True is not a segment
	if isinstance(value, bool) or not isinstance(value, int):
		raise SDHCPError(ErrorKind.FORMAT_ERROR,
			'segment is not an integer: %r' % (value,))
	if value not in range(SEGMENT_MAX + 1):
		raise SDHCPError(ErrorKind.FORMAT_ERROR,
			'`%r` not in range(0x10000)' % value)
	return value


def check_prefix_length(prefix_length):
	if isinstance(prefix_length, bool) or not isinstance(prefix_length, int):
		raise SDHCPError(ErrorKind.FORMAT_ERROR,
			'prefix length is not an integer: %r' % (prefix_length,))
	if prefix_length not in range(ADDRESS_BITS + 1):
		raise SDHCPError(ErrorKind.FORMAT_ERROR,
			'`%r` not in range(%d)' % (prefix_length, ADDRESS_BITS + 1))
	return prefix_length


class Address(namedtuple('Address', 'seg1 seg2 seg3 seg4')):
	"""A 64-bit address made of four 16-bit segments, most significant first

	Ordering follows the 64-bit value, so addresses sort the way their
	integers do.
	"""
	__slots__ = ()

	def __new__(cls, seg1, seg2, seg3, seg4):
		return super().__new__(cls, check_segment(seg1), check_segment(seg2),
			check_segment(seg3), check_segment(seg4))

	@classmethod
	def from_int(cls, value):
		if value not in range(ADDRESS_MAX + 1):
			raise SDHCPError(ErrorKind.FORMAT_ERROR,
				'`%r` is not a 64-bit address' % value)
		return cls(*(
			(value >> (SEGMENT_BITS*shift)) & SEGMENT_MAX
			for shift
			in reversed(range(SEGMENT_COUNT))
		))

	@classmethod
	def from_segments(cls, segments):
		if not isinstance(segments, (list, tuple)):
			raise SDHCPError(ErrorKind.FORMAT_ERROR,
				'address is not a list of segments: %r' % (segments,))
		if len(segments) != SEGMENT_COUNT:
			raise SDHCPError(ErrorKind.FORMAT_ERROR,
				'address needs %d segments, got %d'
				% (SEGMENT_COUNT, len(segments)))
		return cls(*segments)

	def __int__(self):
		value = 0
		for segment in self:
			value = (value << SEGMENT_BITS) | segment
		return value

	def __and__(self, other):
		return type(self)(*(a & b for a, b in zip(self, other)))

	def to_dotted(self):
		return '.'.join(str(segment) for segment in self)

	def to_hex(self):
		return ':'.join('%x' % segment for segment in self)

	def __str__(self):
		return self.to_dotted()


def parse_address(text):
	"""Parse `a.b.c.d` (decimal) or `a:b:c:d` (hex) into an Address"""
	if not isinstance(text, str):
		raise SDHCPError(ErrorKind.FORMAT_ERROR,
			'not an address string: %r' % (text,))

	form, base = (HEX_FORM, 16) if ':' in text else (DOTTED_FORM, 10)
	match = form.fullmatch(text)
	if match is None:
		raise SDHCPError(ErrorKind.FORMAT_ERROR,
			'invalid address format: %r' % text)
	try:
		segments = [int(segment, base) for segment in match.groups()]
	except ValueError:
		# int() refuses overly long decimal strings
		raise SDHCPError(ErrorKind.FORMAT_ERROR,
			'invalid address segment in %.40r' % text) from None
	return Address(*segments)


def subnet_mask(prefix_length):
	check_prefix_length(prefix_length)

	segments = []
	for index in range(SEGMENT_COUNT):
		bits = max(0, min(SEGMENT_BITS, prefix_length - SEGMENT_BITS*index))
		segments.append((SEGMENT_MAX << (SEGMENT_BITS - bits)) & SEGMENT_MAX)
	return Address(*segments)


def network_matches(address, subnet):
	return (address & subnet.mask) == (subnet.base_address & subnet.mask)


@dataclass(frozen=True)
class Subnet:
	base_address: Address
	prefix_length: int
	pool_start: int = 0
	pool_end: int = None

	def __post_init__(self):
		base_address = self.base_address
		if isinstance(base_address, str):
			base_address = parse_address(base_address)
		elif not isinstance(base_address, Address):
			base_address = Address.from_segments(base_address)
		object.__setattr__(self, 'base_address', base_address)

		check_prefix_length(self.prefix_length)
		if self.pool_end is None:
			object.__setattr__(self, 'pool_end', self.host_max)
		if not 0 <= self.pool_start <= self.pool_end <= self.host_max:
			raise ValueError('pool %r-%r does not fit in %d host bits'
				% (self.pool_start, self.pool_end, self.host_bits))

	@property
	def mask(self):
		return subnet_mask(self.prefix_length)

	@property
	def network(self):
		return self.base_address & self.mask

	@property
	def host_bits(self):
		return ADDRESS_BITS - self.prefix_length

	@property
	def host_max(self):
		return (1 << self.host_bits) - 1

	@property
	def first(self):
		return self.compose(self.pool_start)

	@property
	def last(self):
		return self.compose(self.pool_end)

	def __contains__(self, address):
		return network_matches(address, self)

	def host_value(self, address):
		if address not in self:
			raise ValueError('%s is not in %s' % (address, self))
		return int(address) & self.host_max

	def compose(self, host_value):
		if host_value not in range(self.host_max + 1):
			raise ValueError('host value %r does not fit in %d bits'
				% (host_value, self.host_bits))
		return Address.from_int(int(self.network) | host_value)

	def __str__(self):
		return '%s/%d' % (self.network, self.prefix_length)


def check_disjoint(subnets):
	for a, b in combinations(subnets, 2):
		mask = subnet_mask(min(a.prefix_length, b.prefix_length))
		if (a.network & mask) == (b.network & mask):
			raise ValueError('subnets overlap: %s and %s' % (a, b))

# vim:set ft=python ts=4 sw=4 ai noet cc=80:
