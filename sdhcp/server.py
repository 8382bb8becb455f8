# SPDX-License-Identifier: MIT

__all__ = ['BaseSDHCPServer', 'Server', 'SDHCPDaemon', 'configure_logging']

import logging
import threading
from sys import stderr
from time import monotonic

from .error import SDHCPError
from .handshake import Handshake
from .message import decode_message, encode_message
from .transport import LoopbackTransport, Timeout


class BaseSDHCPServer:
	def __init__(self, logger, transport, timeout=5):
		self.housekeeping = []
		self.logger = logger
		self.transport = transport
		self.timeout = timeout

	def handle_packet(self, data):
		try:
			request = decode_message(data)
		except SDHCPError as e:
			self.logger.warning('could not decode packet (caused by %s)', e)
			return None
		except Exception as e:
			self.logger.error('could not decode packet (caused by %r)',
				type(e).__name__)
			return None

		request_type = request.message_type
		handler = getattr(self, 'do_%s' % request_type.name, None)
		if handler is None:
			self.logger.warning('%s - not handled: %s', request.client_id,
				request_type.name)
			return None

		try:
			response = handler(request)
		except Exception as e:
			self.logger.exception('%s - could not handle %s (caused by %r)',
				request.client_id, request_type.name, type(e).__name__)
			return None

		if response is None:
			self.logger.debug('%s - received %s, not replying',
				request.client_id, request_type.name)
			return None

		self.logger.info('%s - received %s, replying %s', request.client_id,
			request_type.name, response.message_type.name)
		return response

	def handle_client(self):
		try:
			data = self.transport.recv(timeout=self.timeout)
		except Timeout:
			return

		response = self.handle_packet(data)
		if response is None:
			return

		self.transport.send(response.client_id, encode_message(response))

	def handle_housekeeping(self):
		for method in self.housekeeping:
			try:
				method()
			except Exception:
				self.logger.exception('housekeeping failed in %s',
					getattr(method, '__name__', method))


class Server(BaseSDHCPServer):
	def __init__(self, logger, config, transport=None, timeout=5,
		clock=monotonic):
		if transport is None:
			transport = LoopbackTransport()
		super().__init__(logger, transport, timeout)
		self.config = config
		self.handshake = Handshake(logger, config, clock=clock)

		self.logger.info('server = %s, subnets = %s, lease time = %s',
			config.server_id,
			', '.join(str(subnet) for subnet in config.subnets),
			config.lease_time)

		self.housekeeping.append(self.handle_expirations)

	@property
	def leases(self):
		return self.handshake.leases

	def do_DISCOVER(self, request):
		return self.handshake.discover(request)

	def do_REQUEST(self, request):
		return self.handshake.request(request)

	def do_RELEASE(self, request):
		return self.handshake.release(request)

	def handle_expirations(self):
		return self.handshake.handle_expirations()


def configure_logging(output='-', level='INFO'):
	if isinstance(output, str):
		if output == '-':
			log_handler = logging.StreamHandler(stderr)
		else:
			log_handler = logging.FileHandler(output)
	else:
		log_handler = logging.StreamHandler(output)

	log_format = '{asctime}|{name}|{levelname}|{message}'
	log_formatter = logging.Formatter(log_format, style='{')
	log_handler.setFormatter(log_formatter)

	logger = logging.Logger(__name__)
	logger.addHandler(log_handler)

	logger.setLevel(level)

	return logger


class SDHCPDaemon:
	def client_target(self):
		while not self.stopping.is_set():
			self.server.handle_client()

	def housekeeping_target(self):
		while not self.stopping.wait(self.server.config.sweep_interval):
			self.server.handle_housekeeping()

	def __init__(self, *args, **kwargs):
		self.server = Server(*args, **kwargs)
		self.stopping = threading.Event()
		self.client_thread = None
		self.housekeeping_thread = None

	@property
	def running(self):
		return self.client_thread is not None

	def run(self):
		if self.running:
			return False
		self.stopping.clear()
		self.client_thread = threading.Thread(target=self.client_target,
			daemon=True)
		self.housekeeping_thread = threading.Thread(
			target=self.housekeeping_target, daemon=True)
		self.client_thread.start()
		self.housekeeping_thread.start()
		return True

	def stop(self):
		if not self.running:
			return False
		self.stopping.set()
		self.client_thread.join()
		self.housekeeping_thread.join()
		self.client_thread = None
		self.housekeeping_thread = None
		return True

# vim:set ft=python ts=4 sw=4 ai noet cc=80:
