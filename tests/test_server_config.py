#!/usr/bin/env python3
"""
Tests for server configuration, command-line parsing and the audit log.
"""

import os
import re
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent.parent))

from server.main_server import build_config, parse_args
from server.utils.config import ServerConfig
from server.utils.logger import ServerLogger


class TestServerConfig(unittest.TestCase):

    def test_defaults(self):
        config = ServerConfig()
        self.assertEqual(config.host, '0.0.0.0')
        self.assertEqual(config.port, 9090)
        self.assertEqual(config.backlog, 16)
        self.assertEqual(config.max_sessions, 128)
        self.assertEqual(config.log_file, 'server.log')

    def test_rejects_zero_capacity(self):
        with self.assertRaises(ValueError):
            ServerConfig(max_sessions=0)

    def test_from_env(self):
        env = {
            'CHAT_HOST': '127.0.0.1',
            'CHAT_PORT': '9191',
            'CHAT_BACKLOG': '4',
            'CHAT_MAX_SESSIONS': '2',
            'CHAT_LOG_FILE': 'relay.log',
        }
        with patch.dict(os.environ, env, clear=True):
            config = ServerConfig.from_env(env_file=os.devnull)
        self.assertEqual(config.host, '127.0.0.1')
        self.assertEqual(config.port, 9191)
        self.assertEqual(config.backlog, 4)
        self.assertEqual(config.max_sessions, 2)
        self.assertEqual(config.log_file, 'relay.log')

    def test_from_dotenv_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            env_file = Path(tmp) / '.env'
            env_file.write_text('CHAT_PORT=9292\nCHAT_LOG_FILE=from-dotenv.log\n', encoding='utf-8')
            with patch.dict(os.environ, {}, clear=True):
                config = ServerConfig.from_env(env_file=str(env_file))
        self.assertEqual(config.port, 9292)
        self.assertEqual(config.log_file, 'from-dotenv.log')

    def test_environment_beats_dotenv_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            env_file = Path(tmp) / '.env'
            env_file.write_text('CHAT_PORT=9292\n', encoding='utf-8')
            with patch.dict(os.environ, {'CHAT_PORT': '9393'}, clear=True):
                config = ServerConfig.from_env(env_file=str(env_file))
        self.assertEqual(config.port, 9393)

    def test_command_line_overrides_environment(self):
        args = parse_args(['--port', '7000', '--max-sessions', '3', '--log-file', 'cli.log'])
        with patch.dict(os.environ, {'CHAT_PORT': '9393', 'CHAT_HOST': '10.0.0.1'}, clear=True):
            with patch('server.utils.config.load_dotenv'):
                config = build_config(args)
        self.assertEqual(config.port, 7000)
        self.assertEqual(config.host, '10.0.0.1')
        self.assertEqual(config.max_sessions, 3)
        self.assertEqual(config.log_file, 'cli.log')


class TestAuditLog(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = Path(self.tmpdir.name) / 'logs' / 'server.log'
        self.audit = ServerLogger()

    def tearDown(self):
        self.audit.close_audit()
        self.tmpdir.cleanup()

    def test_records_are_timestamped(self):
        self.audit.open_audit(str(self.path))
        self.audit.log_connect(1, 'Client-1')
        self.audit.log_rename(1, 'Alice')
        self.audit.close_audit()

        lines = self.path.read_text(encoding='utf-8').splitlines()
        self.assertEqual(len(lines), 2)
        self.assertRegex(lines[0], r'^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}  CONNECT id=1 name=Client-1$')
        self.assertTrue(lines[1].endswith('RENAME id=1 name=Alice'))

    def test_appends_across_opens(self):
        self.audit.open_audit(str(self.path))
        self.audit.log_shutdown()
        self.audit.close_audit()
        self.audit.open_audit(str(self.path))
        self.audit.log_shutdown()
        self.audit.close_audit()

        self.assertEqual(len(self.path.read_text(encoding='utf-8').splitlines()), 2)

    def test_close_happens_once(self):
        self.audit.open_audit(str(self.path))
        self.assertTrue(self.audit.close_audit())
        self.assertFalse(self.audit.close_audit())

    def test_records_after_close_are_dropped(self):
        self.audit.open_audit(str(self.path))
        self.audit.close_audit()
        self.audit.log_chat(1, 'Client-1', 'too late')

        self.assertEqual(self.path.read_text(encoding='utf-8'), '')

    def test_private_records(self):
        self.audit.open_audit(str(self.path))
        self.audit.log_private(1, 3, 'hi')
        self.audit.log_private_failed(1, 0)
        self.audit.close_audit()

        events = [re.sub(r'^\S+ \S+  ', '', line)
                  for line in self.path.read_text(encoding='utf-8').splitlines()]
        self.assertEqual(events, ['PM from=1 to=3 text=hi', 'PM_FAILED from=1 to=0'])


if __name__ == '__main__':
    unittest.main()
