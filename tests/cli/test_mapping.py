import unittest

from click.testing import CliRunner

from bosun.cli import main
from tests.cli.helpers import mock_node

MAPPINGS = [
    {'slot_type': 'position', 'plugin_id': 'gps-driver', 'stream_id': 'gps',
     'active': True, 'last_update': 1500000000000, 'last_value': {'latitude': 1, 'longitude': 2},
     'freshness': {'state': 'stale', 'severity': 'critical', 'age': 60000}},
    {'slot_type': 'speed_over_ground', 'plugin_id': 'gps-driver', 'stream_id': 'sog',
     'active': True, 'last_update': None, 'last_value': None,
     'freshness': {'state': 'no_data', 'severity': 'none', 'age': None}},
    {'slot_type': 'position', 'plugin_id': 'backup-gps', 'stream_id': 'gps',
     'active': False, 'last_update': None, 'last_value': None, 'freshness': None},
]


class TestMappingCommands(unittest.TestCase):

    def setUp(self):
        self.patcher, self.node = mock_node()
        self.patcher.start()
        self.addCleanup(self.patcher.stop)

    def test_lists_mappings(self):
        self.node.mapping_list.return_value = MAPPINGS
        runner = CliRunner()
        result = runner.invoke(main, ['mapping', 'list'])
        self.assertEqual(result.exit_code, 0)
        self.assertIn('stale (critical)', result.output)
        self.assertIn('no_data', result.output)
        self.assertNotIn('backup-gps', result.output)
        result = runner.invoke(main, ['mapping', 'list', '--all'])
        self.assertIn('backup-gps', result.output)
        self.assertIn('inactive', result.output)

    def test_binds_and_unbinds(self):
        runner = CliRunner()
        result = runner.invoke(main, ['mapping', 'bind', 'position', 'gps-driver', 'gps'])
        self.assertEqual(result.exit_code, 0)
        self.node.mapping_bind.assert_awaited_with('position', 'gps-driver', 'gps')
        self.node.mapping_unbind.return_value = False
        result = runner.invoke(main, ['mapping', 'unbind', 'position', 'gps-driver', 'sog'])
        self.assertIn('is not mapped', result.output)
        self.node.mapping_unbind.return_value = True
        result = runner.invoke(main, ['mapping', 'unbind', 'position', 'gps-driver', 'gps'])
        self.assertIn('OK', result.output)

    def test_auto_and_clear(self):
        self.node.mapping_auto.return_value = 2
        self.node.mapping_clear.return_value = 3
        runner = CliRunner()
        result = runner.invoke(main, ['mapping', 'auto', 'gps-driver'])
        self.assertIn('created 2 mapping(s)', result.output)
        result = runner.invoke(main, ['mapping', 'clear'], input='n\n')
        self.assertEqual(result.exit_code, 1)
        self.node.mapping_clear.assert_not_called()
        result = runner.invoke(main, ['mapping', 'clear', '--yes'])
        self.assertIn('removed 3 mapping(s)', result.output)
