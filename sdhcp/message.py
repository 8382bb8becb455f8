# SPDX-License-Identifier: MIT

__all__ = ['MessageType', 'BaseMessage', 'Discover', 'Offer', 'Request', 'Ack',
	'Nack', 'Release', 'encode_message', 'decode_message']

import enum
import json
from dataclasses import dataclass

from .address import Address, check_prefix_length
from .error import ErrorKind, SDHCPError


@enum.unique
class MessageType(enum.Enum):
	DISCOVER = 'DHCP_DISCOVER'
	OFFER = 'DHCP_OFFER'
	REQUEST = 'DHCP_REQUEST'
	ACK = 'DHCP_ACK'
	NACK = 'DHCP_NACK'
	RELEASE = 'DHCP_RELEASE'


class BaseMessage:
	message_type = None


@dataclass(frozen=True)
class Discover(BaseMessage):
	message_type = MessageType.DISCOVER
	client_id: str
	requested_lease_time: int = None
	desired_prefix_length: int = None


@dataclass(frozen=True)
class Offer(BaseMessage):
	message_type = MessageType.OFFER
	client_id: str
	server_id: str
	offered_address: Address
	prefix_length: int
	lease_time: int


@dataclass(frozen=True)
class Request(BaseMessage):
	message_type = MessageType.REQUEST
	client_id: str
	server_id: str
	requested_address: Address
	prefix_length: int


@dataclass(frozen=True)
class Ack(BaseMessage):
	message_type = MessageType.ACK
	client_id: str
	server_id: str
	assigned_address: Address
	prefix_length: int
	lease_time: int


@dataclass(frozen=True)
class Nack(BaseMessage):
	message_type = MessageType.NACK
	client_id: str
	server_id: str
	reason: str = None


@dataclass(frozen=True)
class Release(BaseMessage):
	message_type = MessageType.RELEASE
	client_id: str
	server_id: str
	released_address: Address


def decode_field(data, name, optional=False):
	if name not in data or data[name] is None:
		if optional:
			return None
		raise SDHCPError(ErrorKind.PROTOCOL_ERROR, 'missing field: %s' % name)
	return data[name]


def decode_string(data, name, optional=False):
	value = decode_field(data, name, optional)
	if value is None:
		return None
	if not isinstance(value, str) or not value:
		raise SDHCPError(ErrorKind.PROTOCOL_ERROR,
			'%s must be a non-empty string: %r' % (name, value))
	return value


def decode_int(data, name, optional=False):
	value = decode_field(data, name, optional)
	if value is None:
		return None
	if isinstance(value, bool) or not isinstance(value, int) or value < 0:
		raise SDHCPError(ErrorKind.PROTOCOL_ERROR,
			'%s must be a non-negative integer: %r' % (name, value))
	return value


def decode_prefix_length(data, name, optional=False):
	value = decode_field(data, name, optional)
	if value is None:
		return None
	return check_prefix_length(value)


def decode_address(data, name):
	return Address.from_segments(decode_field(data, name))


def decode_message(packet):
	"""Turn one JSON packet (bytes or str) into a message

	Raises SDHCPError with PROTOCOL_ERROR for anything that is not a known,
	complete message and FORMAT_ERROR for out-of-range addresses and prefix
	lengths.
	"""
	try:
		data = json.loads(packet)
	except (TypeError, ValueError, RecursionError):
		raise SDHCPError(ErrorKind.PROTOCOL_ERROR,
			'not a JSON packet: %.80r' % (packet,)) from None
	if not isinstance(data, dict):
		raise SDHCPError(ErrorKind.PROTOCOL_ERROR,
			'not a JSON object: %r' % (data,))

	try:
		message_type = MessageType(data.get('type'))
	except ValueError:
		raise SDHCPError(ErrorKind.PROTOCOL_ERROR,
			'unknown message type: %r' % (data.get('type'),)) from None

	client_id = decode_string(data, 'clientId')

	if message_type == MessageType.DISCOVER:
		return Discover(
			client_id,
			requested_lease_time=decode_int(data, 'requestedLeaseTime',
				optional=True),
			desired_prefix_length=decode_prefix_length(data,
				'desiredPrefixLength', optional=True)
		)
	elif message_type == MessageType.OFFER:
		return Offer(
			client_id,
			decode_string(data, 'serverId'),
			decode_address(data, 'offeredAddress'),
			decode_prefix_length(data, 'prefixLength'),
			decode_int(data, 'leaseTime')
		)
	elif message_type == MessageType.REQUEST:
		return Request(
			client_id,
			decode_string(data, 'serverId'),
			decode_address(data, 'requestedAddress'),
			decode_prefix_length(data, 'prefixLength')
		)
	elif message_type == MessageType.ACK:
		return Ack(
			client_id,
			decode_string(data, 'serverId'),
			decode_address(data, 'assignedAddress'),
			decode_prefix_length(data, 'prefixLength'),
			decode_int(data, 'leaseTime')
		)
	elif message_type == MessageType.NACK:
		reason = decode_field(data, 'reason', optional=True)
		if reason is not None and not isinstance(reason, str):
			raise SDHCPError(ErrorKind.PROTOCOL_ERROR,
				'reason must be a string: %r' % (reason,))
		return Nack(client_id, decode_string(data, 'serverId'), reason)
	elif message_type == MessageType.RELEASE:
		return Release(
			client_id,
			decode_string(data, 'serverId'),
			decode_address(data, 'releasedAddress')
		)
	else:
		raise SDHCPError(ErrorKind.PROTOCOL_ERROR,
			'unimplemented message type: %r' % message_type)


def encode_message(message):
	if not isinstance(message, BaseMessage) or message.message_type is None:
		raise SDHCPError(ErrorKind.PROTOCOL_ERROR,
			'not a message: %r' % (message,))

	result = {
		'type': message.message_type.value,
		'clientId': message.client_id,
	}

	if isinstance(message, Discover):
		if message.requested_lease_time is not None:
			result['requestedLeaseTime'] = message.requested_lease_time
		if message.desired_prefix_length is not None:
			result['desiredPrefixLength'] = message.desired_prefix_length
	elif isinstance(message, Offer):
		result['serverId'] = message.server_id
		result['offeredAddress'] = list(message.offered_address)
		result['prefixLength'] = message.prefix_length
		result['leaseTime'] = message.lease_time
	elif isinstance(message, Request):
		result['serverId'] = message.server_id
		result['requestedAddress'] = list(message.requested_address)
		result['prefixLength'] = message.prefix_length
	elif isinstance(message, Ack):
		result['serverId'] = message.server_id
		result['assignedAddress'] = list(message.assigned_address)
		result['prefixLength'] = message.prefix_length
		result['leaseTime'] = message.lease_time
	elif isinstance(message, Nack):
		result['serverId'] = message.server_id
		if message.reason is not None:
			result['reason'] = message.reason
	elif isinstance(message, Release):
		result['serverId'] = message.server_id
		result['releasedAddress'] = list(message.released_address)
	else:
		raise SDHCPError(ErrorKind.PROTOCOL_ERROR,
			'unimplemented message: %r' % (message,))

	return json.dumps(result, separators=(',', ':')).encode('utf-8')

# vim:set ft=python ts=4 sw=4 ai noet cc=80:
