"""pytest fixtures"""

import pytest_asyncio

from zoneplayer.client import ZpClient
from zoneplayer.dispatcher import Dispatcher
from zoneplayer.listener import ZpListener
from tests import ADDRESS, EMULATOR_PORT
from tests.emulator import Emulator


@pytest_asyncio.fixture(name="emulator")
async def fixture_emulator():
    """Fixture for creating a ZonePlayer emulator."""
    emulator = Emulator("127.0.0.1", port=EMULATOR_PORT)
    await emulator.start()
    yield emulator
    await emulator.stop()


@pytest_asyncio.fixture(name="dispatcher")
async def fixture_dispatcher():
    """Fixture for creating a dispatcher shared by client and listener."""
    yield Dispatcher()


@pytest_asyncio.fixture(name="client")
async def fixture_client(dispatcher: Dispatcher):
    """Fixture for creating a client of the emulator."""
    client = ZpClient(ADDRESS, timeout=1, dispatcher=dispatcher)
    yield client
    await client.close()


@pytest_asyncio.fixture(name="listener")
async def fixture_listener(dispatcher: Dispatcher):
    """Fixture for creating a started listener."""
    listener = ZpListener(dispatcher, host="127.0.0.1")
    await listener.start()
    yield listener
    await listener.stop()
