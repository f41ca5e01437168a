import unittest
import tempfile
import json
import os

from click.testing import CliRunner

from bosun.cli import main
from bosun.errors import ApiError
from tests import helpers
from tests.cli.helpers import mock_node, PLUGIN


class TestPluginCommands(unittest.TestCase):

    def setUp(self):
        self.patcher, self.node = mock_node()
        self.node_cls = self.patcher.start()
        self.addCleanup(self.patcher.stop)

    def test_lists_plugins(self):
        faulted = dict(PLUGIN, id='ais-driver', status='error', error='serial port not found')
        self.node.plugin_list.return_value = [PLUGIN, faulted]
        runner = CliRunner()
        result = runner.invoke(main, ['-u', 'http://boat:8088', 'plugin', 'list'])
        self.assertEqual(result.exit_code, 0)
        self.assertIn('gps-driver', result.output)
        self.assertIn('error: serial port not found', result.output)
        self.node_cls.assert_called_with('http://boat:8088')
        self.node.close.assert_awaited()

    def test_installs_plugin(self):
        self.node.plugin_install.return_value = PLUGIN
        with tempfile.TemporaryDirectory() as tmp_dir:
            manifest_file = os.path.join(tmp_dir, "manifest.json")
            with open(manifest_file, 'w') as f:
                json.dump(helpers.driver_manifest("gps-driver"), f)
            runner = CliRunner()
            result = runner.invoke(main, ['plugin', 'install', manifest_file])
        self.assertEqual(result.exit_code, 0)
        self.assertIn('installed [gps-driver]', result.output)
        self.assertEqual(self.node.plugin_install.call_args[0][0]['id'], 'gps-driver')

    def test_invalid_manifest_file(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            with open("manifest.json", 'w') as f:
                f.write("{broken")
            result = runner.invoke(main, ['plugin', 'install', 'manifest.json'])
        self.assertEqual(result.exit_code, 1)
        self.assertIn('invalid manifest', result.output)
        self.node.plugin_install.assert_not_called()

    def test_uninstall_requires_confirmation(self):
        runner = CliRunner()
        result = runner.invoke(main, ['plugin', 'uninstall', 'gps-driver'], input='n\n')
        self.assertEqual(result.exit_code, 1)
        self.node.plugin_uninstall.assert_not_called()
        result = runner.invoke(main, ['plugin', 'uninstall', 'gps-driver'], input='y\n')
        self.assertEqual(result.exit_code, 0)
        self.node.plugin_uninstall.assert_awaited_with('gps-driver')

    def test_enables_and_disables(self):
        self.node.plugin_enable.return_value = PLUGIN
        self.node.plugin_disable.return_value = dict(PLUGIN, status='disabled')
        runner = CliRunner()
        result = runner.invoke(main, ['plugin', 'enable', 'gps-driver'])
        self.assertIn('[gps-driver] is enabled', result.output)
        result = runner.invoke(main, ['plugin', 'disable', 'gps-driver'])
        self.assertIn('[gps-driver] is disabled', result.output)

    def test_reports_api_errors(self):
        self.node.plugin_enable.side_effect = ApiError("plugin [ghost] is not installed [404]")
        runner = CliRunner()
        result = runner.invoke(main, ['plugin', 'enable', 'ghost'])
        self.assertEqual(result.exit_code, 1)
        self.assertIn('Error: plugin [ghost] is not installed', result.output)
