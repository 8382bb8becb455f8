# SPDX-License-Identifier: MIT

import logging

import pytest

from sdhcp.address import Address, Subnet
from sdhcp.config import ServerConfig


class FakeClock:
	def __init__(self, now=1000.0):
		self.now = now

	def __call__(self):
		return self.now

	def advance(self, seconds):
		self.now += seconds


@pytest.fixture
def clock():
	return FakeClock()


@pytest.fixture
def logger():
	logger = logging.getLogger('sdhcp.tests')
	logger.setLevel(logging.DEBUG)
	return logger


@pytest.fixture
def subnet():
	return Subnet(Address(0, 10, 1024, 0), 48, 0, 65535)


@pytest.fixture
def config(subnet):
	return ServerConfig(server_id='S1', subnets=(subnet,))
