# SPDX-License-Identifier: MIT

__all__ = ['Timeout', 'Transport', 'LoopbackTransport']

import queue
import threading

from .error import Error


class Timeout(Error):
	pass


class Transport:
	"""What the server needs from the message bus

	`recv()` returns the next packet broadcast to servers, raising Timeout
	when none arrives in time; `send()` unicasts a reply to one client.
	"""

	def recv(self, timeout=None):
		raise NotImplementedError

	def send(self, client_id, data):
		raise NotImplementedError


class LoopbackTransport(Transport):
	"""An in-process bus: packets are handed in with `deliver()` and the
	replies for a client read back with `replies()`"""

	def __init__(self):
		self.inbound = queue.Queue()
		self.outbound = {}
		self.outbound_lock = threading.Lock()

	def deliver(self, data):
		if isinstance(data, str):
			data = data.encode('utf-8')
		self.inbound.put(bytes(data))

	def recv(self, timeout=None):
		try:
			return self.inbound.get(timeout=timeout)
		except queue.Empty:
			raise Timeout('nothing received within %r seconds'
				% timeout) from None

	def send(self, client_id, data):
		with self.outbound_lock:
			self.outbound.setdefault(client_id, []).append(bytes(data))

	def replies(self, client_id):
		with self.outbound_lock:
			return self.outbound.pop(client_id, [])

# vim:set ft=python ts=4 sw=4 ai noet cc=80:
