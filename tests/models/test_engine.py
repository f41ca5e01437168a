import asyncio
import unittest
from unittest import mock

from sqlalchemy.exc import SQLAlchemyError

from bosun.models.engine import SensorEngine
from bosun.models.plugin import PluginInstance
from bosun.services import sync_state
from bosun.errors import PluginFault, TypeMismatch, DuplicatePlugin
from tests import helpers

STATUS = PluginInstance.STATUS


class TestSensorEngine(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.engine = SensorEngine(poll_interval=0.01)
        await self.engine.install(helpers.driver_manifest('gps-driver'))
        await self.engine.enable('gps-driver')

    async def asyncTearDown(self):
        await self.engine.stop()

    async def test_commands(self):
        mapping = await self.engine.bind('position', 'gps-driver', 'gps')
        self.assertTrue(mapping.active)
        with self.assertRaises(TypeMismatch):
            await self.engine.bind('depth', 'gps-driver', 'sog')
        self.assertEqual(await self.engine.auto_map('gps-driver'), 1)
        self.assertEqual(len(self.engine.snapshot()), 2)
        self.assertFalse(await self.engine.unbind('position', 'gps-driver', 'sog'))
        self.assertTrue(await self.engine.unbind('position', 'gps-driver', 'gps'))
        self.assertEqual(await self.engine.clear_mappings(), 1)
        self.assertEqual(self.engine.snapshot(), [])
        instance = await self.engine.disable('gps-driver')
        self.assertEqual(instance.status, STATUS.DISABLED)
        self.assertEqual(self.engine.available_streams(), [])

    async def test_concurrent_binds_leave_one_active_mapping(self):
        await self.engine.install(helpers.driver_manifest('backup-gps', streams=[('fix', 'position')]))
        await self.engine.enable('backup-gps')
        binds = []
        for i in range(10):
            if i % 2 == 0:
                binds.append(self.engine.bind('position', 'gps-driver', 'gps'))
            else:
                binds.append(self.engine.bind('position', 'backup-gps', 'fix'))
        await asyncio.gather(*binds)
        active = [m for m in self.engine.snapshot() if m.active]
        self.assertEqual(len(active), 1)
        # commands are applied in order, the last bind wins
        self.assertEqual(active[0].plugin_id, 'backup-gps')

    async def test_queued_ingest(self):
        await self.engine.bind('speed_over_ground', 'gps-driver', 'sog')
        self.engine.ingest('gps-driver', 'sog', 5.2, 1000)
        self.engine.ingest('gps-driver', 'sog', 5.4, 2000)
        # nothing is applied until the queue is drained
        self.assertIsNone(self.engine.snapshot()[0].last_update)
        self.assertEqual(self.engine.drain(), 2)
        mapping = self.engine.snapshot()[0]
        self.assertEqual((mapping.last_value, mapping.last_update), (5.4, 2000))
        self.assertEqual(self.engine.frame()['navigation']['speed_over_ground'], 5.4)

    async def test_ingest_overflow_drops_oldest(self):
        engine = SensorEngine(queue_size=2)
        await engine.install(helpers.driver_manifest('gps-driver'))
        await engine.enable('gps-driver')
        await engine.bind('speed_over_ground', 'gps-driver', 'sog')
        for i in range(3):
            engine.ingest('gps-driver', 'sog', float(i), 1000 + i)
        self.assertEqual(engine.stats.overflow, 1)
        self.assertEqual(engine.drain(), 2)
        self.assertEqual([e.value for e in engine.recent()], [1.0, 2.0])

    async def test_background_ingest(self):
        await self.engine.start()
        await self.engine.bind('speed_over_ground', 'gps-driver', 'sog')
        self.engine.ingest('gps-driver', 'sog', 6.1)
        await asyncio.to_thread(self.engine.ingest_threadsafe, 'gps-driver', 'sog', 6.3)
        for _ in range(50):
            if self.engine.stats.accepted == 2:
                break
            await asyncio.sleep(0.01)
        self.assertEqual(self.engine.stats.accepted, 2)
        self.assertEqual(self.engine.snapshot()[0].last_value, 6.3)

    async def test_ingest_threadsafe_requires_running_engine(self):
        with self.assertRaises(RuntimeError):
            self.engine.ingest_threadsafe('gps-driver', 'sog', 6.3)

    async def test_monitor_snapshot(self):
        await self.engine.bind('speed_over_ground', 'gps-driver', 'sog')
        await self.engine.bind('position', 'gps-driver', 'gps')
        self.engine.ingest('gps-driver', 'sog', 5.2, 1000)
        self.engine.drain()
        snapshot = self.engine.monitor_snapshot(now=2000)
        self.assertEqual(snapshot['timestamp'], 2000)
        by_slot = dict((m['slot_type'], m) for m in snapshot['mappings'])
        self.assertEqual(by_slot['speed_over_ground']['freshness']['state'], 'flowing')
        self.assertEqual(by_slot['position']['freshness']['state'], 'no_data')
        self.assertEqual(snapshot['debug'][0]['value'], 5.2)
        self.assertEqual(snapshot['stats']['accepted'], 1)
        states = dict((m.slot_type, f.severity.value) for (m, f) in self.engine.freshness(now=12000))
        self.assertEqual(states, {'speed_over_ground': 'critical', 'position': 'none'})

    async def test_subscription(self):
        subscription = self.engine.subscribe()
        self.assertEqual(self.engine.subscriber_count, 1)
        snapshot = await asyncio.wait_for(subscription.queue.get(), 1)
        self.assertIn('mappings', snapshot)
        # snapshots keep coming
        await asyncio.wait_for(subscription.queue.get(), 1)
        subscription.unsubscribe()
        self.assertEqual(self.engine.subscriber_count, 0)
        self.assertIsNone(self.engine._poll_task)
        self.assertFalse(subscription.active)
        subscription.unsubscribe()

    async def test_slow_subscribers_lose_old_snapshots(self):
        subscription = self.engine.subscribe(maxsize=1)
        await asyncio.sleep(0.1)
        self.assertEqual(subscription.queue.qsize(), 1)
        subscription.unsubscribe()

    async def test_report_fault(self):
        await self.engine.bind('position', 'gps-driver', 'gps')
        with self.assertLogs(level='ERROR'):
            instance = await self.engine.report_fault('gps-driver', 'lost NMEA fix')
        self.assertEqual(instance.status, STATUS.ERROR)
        self.assertEqual(instance.last_error, 'lost NMEA fix')
        # the mapping is kept, inactive, and the manifest stays installed
        self.assertFalse(self.engine.snapshot()[0].active)
        self.assertEqual(self.engine.available_streams(), [])
        self.assertEqual(self.engine.list_instances()[0].installed_version, '1.0.0')

    async def test_bad_events_do_not_stop_ingest(self):
        await self.engine.start()
        await self.engine.bind('speed_over_ground', 'gps-driver', 'sog')
        self.engine.ingest('gps-driver', 'sog', 5.0, float('nan'))
        self.engine.ingest(['gps-driver'], 'sog', 5.0, 1000)
        self.engine.ingest('gps-driver', 'sog', 5.1, float('inf'))
        self.engine.ingest('gps-driver', 'sog', 5.2, 1000)
        for _ in range(50):
            if self.engine.stats.accepted == 1:
                break
            await asyncio.sleep(0.01)
        self.assertFalse(self.engine._ingest_task.done())
        self.assertEqual(self.engine.stats.malformed, 3)
        self.assertEqual(self.engine.snapshot()[0].last_value, 5.2)

    async def test_drain_survives_errors(self):
        await self.engine.bind('speed_over_ground', 'gps-driver', 'sog')
        self.engine.ingest('gps-driver', 'sog', 5.0, 1000)
        self.engine.ingest('gps-driver', 'sog', 5.2, 2000)
        original = self.engine.table.ingest
        calls = []

        def failing_ingest(*args):
            calls.append(args)
            if len(calls) == 1:
                raise ValueError("corrupt event")
            return original(*args)

        with mock.patch.object(self.engine.table, 'ingest', side_effect=failing_ingest):
            with self.assertLogs(level='WARNING'):
                self.assertEqual(self.engine.drain(), 1)
        self.assertEqual(self.engine.stats.malformed, 1)
        self.assertEqual(self.engine.snapshot()[0].last_value, 5.2)

    async def test_packet_replaces_assembled_frame(self):
        await self.engine.bind('speed_over_ground', 'gps-driver', 'sog')
        self.engine.ingest('gps-driver', 'sog', 5.2, 1000)
        packet = {'navigation': {'speed_over_ground': 7.5}, 'environment': {}}
        self.engine.ingest_packet('gps-driver', packet, 1500)
        self.engine.drain()
        frame = self.engine.frame(now=2000)
        self.assertEqual(frame['navigation'], {'speed_over_ground': 7.5})
        self.assertEqual(frame['timestamp'], 1500)
        # the frame is a copy
        frame['navigation']['speed_over_ground'] = 0
        self.assertEqual(self.engine.frame()['navigation']['speed_over_ground'], 7.5)
        # disabling the driver falls back to the mapped slots
        await self.engine.disable('gps-driver')
        self.assertIsNone(self.engine.table.packet())
        self.assertEqual(self.engine.frame(now=2000)['navigation']['speed_over_ground'], 0)

    async def test_packet_cleared_by_fault_and_uninstall(self):
        await self.engine.install(helpers.driver_manifest('demo-driver', streams=[('fix', 'position')]))
        await self.engine.enable('demo-driver')
        self.engine.ingest_packet('demo-driver', {'timestamp': 10}, 10)
        self.engine.drain()
        # only the providing plugin clears the packet
        with self.assertLogs(level='ERROR'):
            await self.engine.report_fault('gps-driver', 'lost NMEA fix')
        self.assertEqual(self.engine.frame(), {'timestamp': 10})
        with self.assertLogs(level='ERROR'):
            await self.engine.report_fault('demo-driver', 'simulator crashed')
        self.assertIsNone(self.engine.table.packet())
        await self.engine.enable('demo-driver')
        self.engine.ingest_packet('demo-driver', {'timestamp': 20})
        self.engine.drain()
        self.assertEqual(self.engine.table.packet_plugin, 'demo-driver')
        await self.engine.uninstall('demo-driver')
        self.assertIsNone(self.engine.table.packet())

    async def test_concurrent_installs_update_once_installed(self):
        first = helpers.driver_manifest('depth-driver', version='1.0.0')
        second = helpers.driver_manifest('depth-driver', version='1.1.0')
        results = await asyncio.gather(self.engine.install_or_update(first),
                                       self.engine.install_or_update(second))
        self.assertEqual([r.installed_version for r in results], ['1.0.0', '1.1.0'])
        self.assertEqual(self.engine.store.find('depth-driver').installed_version, '1.1.0')

    async def test_update_keeps_matching_mappings(self):
        await self.engine.bind('position', 'gps-driver', 'gps')
        await self.engine.bind('speed_over_ground', 'gps-driver', 'sog')
        instance = await self.engine.update(helpers.driver_manifest(
            'gps-driver', version='2.0.0', streams=[('gps', 'position')]))
        self.assertEqual(instance.installed_version, '2.0.0')
        self.assertEqual(instance.status, STATUS.ENABLED)
        self.assertEqual([m.slot_type for m in self.engine.snapshot()], ['position'])


class TestSensorEngineDriverHost(unittest.IsolatedAsyncioTestCase):

    async def test_starts_and_stops_drivers(self):
        host = helpers.MockDriverHost()
        engine = SensorEngine(driver_host=host)
        await engine.install(helpers.driver_manifest('gps-driver'))
        instance = await engine.enable('gps-driver')
        self.assertEqual(instance.status, STATUS.ENABLED)
        self.assertEqual(host.started, ['gps-driver'])
        # enabling a running plugin does not restart it
        await engine.enable('gps-driver')
        self.assertEqual(host.started, ['gps-driver'])
        await engine.update(helpers.driver_manifest('gps-driver', version='1.1.0'))
        self.assertEqual(host.stopped, ['gps-driver'])
        self.assertEqual(host.started, ['gps-driver', 'gps-driver'])
        await engine.disable('gps-driver')
        await engine.uninstall('gps-driver')
        self.assertEqual(host.stopped, ['gps-driver', 'gps-driver'])

    async def test_start_failure_faults_plugin(self):
        host = helpers.MockDriverHost(fail='serial port not found')
        engine = SensorEngine(driver_host=host)
        await engine.install(helpers.driver_manifest('gps-driver'))
        with self.assertLogs(level='ERROR'):
            with self.assertRaisesRegex(PluginFault, 'serial port not found'):
                await engine.enable('gps-driver')
        instance = engine.store.find('gps-driver')
        self.assertEqual(instance.status, STATUS.ERROR)
        self.assertEqual(instance.last_error, 'serial port not found')
        self.assertEqual(engine.available_streams(), [])

    async def test_restarts_running_drivers(self):
        db = helpers.create_db()
        engine = SensorEngine(db=db)
        await engine.install(helpers.driver_manifest('gps-driver'))
        await engine.enable('gps-driver')
        host = helpers.MockDriverHost()
        restarted = SensorEngine(db=db, driver_host=host)
        restarted.load()
        await restarted.start()
        self.assertEqual(host.started, ['gps-driver'])
        await restarted.stop()
        self.assertEqual(host.stopped, ['gps-driver'])
        db.close()


class TestSensorEnginePersistence(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.db = helpers.create_db()

    async def asyncTearDown(self):
        self.db.close()

    async def test_state_survives_restart(self):
        engine = SensorEngine(db=self.db)
        await engine.install(helpers.driver_manifest('gps-driver'))
        await engine.install(helpers.driver_manifest('bmv-driver', streams=[
            ('house_v', 'battery_voltage'), ('start_v', 'battery_voltage')]))
        await engine.install(helpers.ui_manifest())
        await engine.enable('gps-driver')
        await engine.enable('bmv-driver')
        await engine.bind('position', 'gps-driver', 'gps')
        await engine.bind('battery_voltage', 'bmv-driver', 'house_v')
        await engine.bind('battery_voltage', 'bmv-driver', 'start_v')
        engine.ingest('gps-driver', 'gps', {'lat': 43.1, 'lon': 5.9}, 1000)
        engine.drain()

        restored = SensorEngine(db=self.db)
        restored.load()
        self.assertEqual([(p.id, p.status) for p in restored.list_instances()],
                         [('gps-driver', STATUS.ENABLED),
                          ('bmv-driver', STATUS.ENABLED),
                          ('night-theme', STATUS.INSTALLED)])
        mappings = dict(((m.slot_type, m.stream_id), m) for m in restored.snapshot())
        self.assertTrue(mappings[('position', 'gps')].active)
        self.assertTrue(mappings[('battery_voltage', 'start_v')].active)
        self.assertFalse(mappings[('battery_voltage', 'house_v')].active)
        # live values are not persisted
        self.assertIsNone(mappings[('position', 'gps')].last_update)

    async def test_removed_state_is_deleted(self):
        engine = SensorEngine(db=self.db)
        await engine.install(helpers.driver_manifest('gps-driver'))
        await engine.enable('gps-driver')
        await engine.bind('position', 'gps-driver', 'gps')
        await engine.uninstall('gps-driver')
        restored = SensorEngine(db=self.db)
        restored.load()
        self.assertEqual(restored.list_instances(), [])
        self.assertEqual(restored.snapshot(), [])

    async def test_failed_command_is_not_persisted(self):
        engine = SensorEngine(db=self.db)
        await engine.install(helpers.driver_manifest('gps-driver'))
        with self.assertRaises(DuplicatePlugin):
            await engine.install(helpers.driver_manifest('gps-driver', version='9.0.0'))
        restored = SensorEngine(db=self.db)
        restored.load()
        self.assertEqual(restored.store.find('gps-driver').installed_version, '1.0.0')

    async def test_database_errors_are_logged(self):
        engine = SensorEngine(db=self.db)
        with mock.patch.object(sync_state, 'save', side_effect=SQLAlchemyError("disk full")):
            with self.assertLogs(level='ERROR') as logs:
                instance = await engine.install(helpers.driver_manifest('gps-driver'))
        self.assertIn('disk full', logs.output[0])
        # the command still succeeds and the next write catches up
        self.assertEqual(instance.id, 'gps-driver')
        await engine.enable('gps-driver')
        restored = SensorEngine(db=self.db)
        restored.load()
        self.assertEqual(restored.store.find('gps-driver').status, STATUS.ENABLED)
