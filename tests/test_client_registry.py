#!/usr/bin/env python3
"""
Unit tests for the client registry.

Covers id assignment, capacity, slot reuse, renames, lookups, snapshots
and serialized delivery.
"""

import asyncio
import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from chat_fakes import FakeWriter
from server.registry.client_registry import (
    ClientRegistry, RegistryClosed, RegistryFull, SessionNotFound
)


class TestRegistration(unittest.IsolatedAsyncioTestCase):
    """Registration and removal."""

    async def asyncSetUp(self):
        self.registry = ClientRegistry(capacity=4)

    async def test_ids_unique_and_increasing(self):
        """Ids grow strictly and default names follow them."""
        sessions = [await self.registry.register(FakeWriter()) for _ in range(4)]
        self.assertEqual([s.id for s in sessions], [1, 2, 3, 4])
        self.assertEqual([s.display_name for s in sessions],
                         ['Client-1', 'Client-2', 'Client-3', 'Client-4'])

    async def test_concurrent_registrations_get_distinct_ids(self):
        sessions = await asyncio.gather(*(self.registry.register(FakeWriter()) for _ in range(4)))
        ids = sorted(s.id for s in sessions)
        self.assertEqual(ids, [1, 2, 3, 4])

    async def test_full_registry_rejects_and_is_unchanged(self):
        for _ in range(4):
            await self.registry.register(FakeWriter())
        before = await self.registry.snapshot()

        with self.assertRaises(RegistryFull):
            await self.registry.register(FakeWriter())

        self.assertEqual(await self.registry.snapshot(), before)
        # A rejected registration does not consume an id
        await self.registry.unregister(1)
        session = await self.registry.register(FakeWriter())
        self.assertEqual(session.id, 5)

    async def test_unregister_is_idempotent_and_closes_writer(self):
        writer = FakeWriter()
        session = await self.registry.register(writer)

        self.assertTrue(await self.registry.unregister(session.id))
        self.assertTrue(writer.closed)
        self.assertFalse(await self.registry.unregister(session.id))
        self.assertEqual(await self.registry.count(), 0)

    async def test_reused_slot_carries_no_stale_identity(self):
        """A freed slot gets a fresh id and default name, never the old ones."""
        first = await self.registry.register(FakeWriter())
        await self.registry.rename(first.id, 'Alice')
        await self.registry.unregister(first.id)

        second = await self.registry.register(FakeWriter())
        self.assertEqual(second.id, 2)
        self.assertEqual(second.display_name, 'Client-2')
        with self.assertRaises(SessionNotFound):
            await self.registry.lookup_by_id(first.id)

    async def test_register_after_close_all(self):
        await self.registry.close_all(b'bye\n')
        self.assertTrue(self.registry.closed)
        with self.assertRaises(RegistryClosed):
            await self.registry.register(FakeWriter())


class TestNamesAndLookups(unittest.IsolatedAsyncioTestCase):
    """Rename, lookup and snapshot."""

    async def asyncSetUp(self):
        self.registry = ClientRegistry(capacity=8)
        self.sessions = [await self.registry.register(FakeWriter()) for _ in range(3)]

    async def test_rename_visible_to_lookup(self):
        stored = await self.registry.rename(1, 'Alice')
        self.assertEqual(stored, 'Alice')
        session = await self.registry.lookup_by_id(1)
        self.assertEqual(session.display_name, 'Alice')

    async def test_rename_truncates_silently(self):
        stored = await self.registry.rename(2, 'x' * 50)
        self.assertEqual(stored, 'x' * 31)

    async def test_rename_truncates_on_character_boundary(self):
        # 'é' is two bytes; 16 of them are 32 bytes, so only 15 fit
        stored = await self.registry.rename(2, 'é' * 16)
        self.assertEqual(stored, 'é' * 15)
        self.assertLessEqual(len(stored.encode('utf-8')), 31)

    async def test_rename_unknown_id(self):
        with self.assertRaises(SessionNotFound):
            await self.registry.rename(99, 'Ghost')

    async def test_lookup_missing(self):
        with self.assertRaises(SessionNotFound):
            await self.registry.lookup_by_id(0)
        with self.assertRaises(SessionNotFound):
            await self.registry.lookup_by_id(42)

    async def test_snapshot_in_table_order(self):
        await self.registry.unregister(1)
        await self.registry.register(FakeWriter())  # takes slot 0 with id 4
        snapshot = await self.registry.snapshot()
        self.assertEqual([(s.id, s.display_name) for s in snapshot],
                         [(4, 'Client-4'), (2, 'Client-2'), (3, 'Client-3')])

    async def test_concurrent_readers_see_whole_names(self):
        names = ['Alice', 'Bob-the-builder', 'C']

        async def renamer():
            for i in range(30):
                await self.registry.rename(1, names[i % len(names)])

        async def reader():
            seen = []
            for _ in range(30):
                seen.append((await self.registry.lookup_by_id(1)).display_name)
            return seen

        _, seen = await asyncio.gather(renamer(), reader())
        for name in seen:
            self.assertIn(name, names + ['Client-1'])


class TestDelivery(unittest.IsolatedAsyncioTestCase):
    """Broadcast and routed writes."""

    async def asyncSetUp(self):
        self.registry = ClientRegistry(capacity=8)
        self.writers = [FakeWriter() for _ in range(3)]
        for writer in self.writers:
            await self.registry.register(writer)

    async def test_deliver_except_skips_excluded(self):
        delivered = await self.registry.deliver_except(b'hi\n', exclude_id=2)
        self.assertEqual(delivered, 2)
        self.assertEqual(self.writers[0].lines(), ['hi'])
        self.assertEqual(self.writers[1].lines(), [])
        self.assertEqual(self.writers[2].lines(), ['hi'])

    async def test_deliver_without_exclusion_reaches_everyone(self):
        await self.registry.deliver_except(b'all\n')
        for writer in self.writers:
            self.assertEqual(writer.lines(), ['all'])

    async def test_deliver_to_one(self):
        self.assertTrue(await self.registry.deliver_to(3, b'psst\n'))
        self.assertEqual(self.writers[2].lines(), ['psst'])
        self.assertEqual(self.writers[0].lines(), [])

    async def test_deliver_to_vanished_is_noop(self):
        await self.registry.unregister(3)
        self.assertFalse(await self.registry.deliver_to(3, b'late\n'))
        self.assertEqual(self.writers[2].lines(), [])

    async def test_failed_recipient_does_not_stop_broadcast(self):
        broken = FakeWriter(fail_with=ConnectionResetError('peer gone'))
        await self.registry.register(broken)

        delivered = await self.registry.deliver_except(b'still here\n')

        self.assertEqual(delivered, 3)
        for writer in self.writers:
            self.assertEqual(writer.lines(), ['still here'])

    async def test_close_all_sends_notice_and_empties_table(self):
        closed = await self.registry.close_all(b'[Server] Shutting down.\n')

        self.assertEqual(closed, 3)
        for writer in self.writers:
            self.assertEqual(writer.lines(), ['[Server] Shutting down.'])
            self.assertTrue(writer.closed)
        self.assertEqual(await self.registry.snapshot(), [])
        self.assertEqual(await self.registry.close_all(b'again\n'), 0)


if __name__ == '__main__':
    unittest.main()
