# SPDX-License-Identifier: MIT

__all__ = ['address_range']

from .address import Address


class address_range_iterator:
	def __init__(self, address_range_instance):
		self.address_range = address_range_instance
		self.offset = -self.address_range.step
	def __iter__(self):
		return self
	def __next__(self):
		current_offset = self.offset
		self.offset += self.address_range.step
		result = int(self.address_range.start) + self.offset
		if result > int(self.address_range.stop):
			# NOTE: reset the offset so it doesn't grow infinitely
			self.offset = current_offset
			raise StopIteration
		return Address.from_int(result)

class address_range:
	"""Addresses from `start` to `stop`, both inclusive, every `step`

	Right-inclusive because a pool is configured by its first and last host
	value, and the last address of the 64-bit space has no successor.
	"""
	def __init__(self, start, stop, step=1):
		self.start = self.check_address(start)
		self.stop = self.check_address(stop)
		if step < 1:
			raise ValueError('%s() arg 3 must be positive'
				% type(self).__name__)
		self.step = step
	@staticmethod
	def check_address(address):
		if isinstance(address, Address):
			return address
		if isinstance(address, int):
			return Address.from_int(address)
		return Address.from_segments(address)
	def __contains__(self, address):
		address = self.check_address(address)

		address_relative = int(address) - int(self.start)
		in_range = self.start <= address <= self.stop
		in_step = address_relative%self.step == 0

		return in_range and in_step
	def index(self, address):
		if address not in self:
			raise ValueError('%r is not in %r' % (address, self))
		return (int(address) - int(self.start))//self.step
	def __getitem__(self, index):
		if isinstance(index, slice):
			indices = range(*index.indices(self.size))
			if indices.step < 1:
				raise ValueError('%s slices must have a positive step'
					% type(self).__name__)
			if not indices:
				# NOTE: stop < start is how an empty range is spelled
				return type(self)(1, 0)
			return type(self)(self[indices[0]], self[indices[-1]],
				self.step*indices.step)
		elif isinstance(index, int):
			if index < 0:
				index += self.size
			if index not in range(0, self.size):
				raise IndexError('%s index out of range' % type(self).__name__)
			return Address.from_int(int(self.start) + index*self.step)
		else:
			raise TypeError('%s indices must be integers or slices, not %s'
				% (type(self).__name__, type(index).__name__))
	@property
	def size(self):
		# NOTE: len() overflows past sys.maxsize, which a /0 pool exceeds
		if self.stop < self.start:
			return 0
		distance = int(self.stop) - int(self.start)
		return distance//self.step + 1
	def __len__(self):
		return self.size
	def __iter__(self):
		return address_range_iterator(self)
	def __repr__(self):
		if self.step != 1:
			return '%s(%r, %r, %r)' % (
				type(self).__name__,
				str(self.start),
				str(self.stop),
				self.step
			)
		return '%s(%r, %r)' % (
			type(self).__name__,
			str(self.start),
			str(self.stop)
		)

# vim:set ft=python ts=4 sw=4 ai noet cc=80:
