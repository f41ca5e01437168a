from unittest import mock


def mock_node():
    """Patch the daemon client used by the CLI, every API call is an AsyncMock"""
    node = mock.AsyncMock()
    patcher = mock.patch('bosun.cli.config.Node', return_value=node)
    return patcher, node


PLUGIN = {
    'id': 'gps-driver',
    'manifest': {'id': 'gps-driver', 'name': 'GPS Driver', 'version': '1.0.0',
                 'type': 'driver', 'author': 'Bosun Tests', 'builtin': False},
    'installed_version': '1.0.0',
    'status': 'enabled',
    'enabled': True,
    'error': None
}
