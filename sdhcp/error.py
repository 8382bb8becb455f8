# SPDX-License-Identifier: MIT

__all__ = ['Error', 'ErrorKind', 'SDHCPError']

import enum


class Error(Exception):
	"""Base class for SDHCP errors"""
	pass


@enum.unique
class ErrorKind(enum.Enum):
	FORMAT_ERROR = 'FormatError'
	POOL_EXHAUSTED = 'PoolExhausted'
	ADDRESS_IN_USE = 'AddressInUse'
	NOT_OWNER = 'NotOwner'
	NO_SUCH_RESERVATION = 'NoSuchReservation'
	PROTOCOL_ERROR = 'ProtocolError'


class SDHCPError(Error):
	"""An SDHCP failure; the kind says how the server reacts to it"""

	def __init__(self, kind, message=''):
		super().__init__(kind, message)
		self.kind = ErrorKind(kind)
		self.message = message

	def __str__(self):
		if not self.message:
			return self.kind.value
		return '%s: %s' % (self.kind.value, self.message)

# vim:set ft=python ts=4 sw=4 ai noet cc=80:
