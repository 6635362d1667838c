"""Pytest configuration for lanshare tests."""
import sys
from pathlib import Path

# Flat layout: the modules live at the project root
_PROJECT_ROOT = Path(__file__).parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

import pytest

from share_server import ShareContext, create_app

LAN_IP = '192.168.1.20'
PORT = 5000


@pytest.fixture
def context():
    ctx = ShareContext(port=PORT, address_resolver=lambda bound_host: LAN_IP)
    yield ctx
    ctx.close()


@pytest.fixture
def app(context):
    app = create_app(context, max_preview_bytes=64)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_file(tmp_path):
    """Write a file under tmp_path and return its path as a string."""
    def _make(name, content=b''):
        path = tmp_path / name
        if isinstance(content, str):
            content = content.encode('utf-8')
        path.write_bytes(content)
        return str(path)
    return _make
