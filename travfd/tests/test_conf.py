"""Tests for TRA VFD configuration resolution."""

from __future__ import annotations

import datetime as dt
import os
from unittest import mock

from django.test import SimpleTestCase, override_settings

from travfd import conf


class BuildSettingsTests(SimpleTestCase):
    def test_defaults(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = conf.build_settings({})

        self.assertEqual(settings.base_url, "https://virtual.tra.go.tz/efdmsRctApi")
        self.assertEqual(settings.endpoint("token"), "/vfdtoken")
        self.assertEqual(settings.endpoint("verify"), "/efdmsRctVerify/Home/Index")
        self.assertTrue(settings.encrypt_payloads)
        self.assertEqual(settings.token_ttl, dt.timedelta(minutes=55))
        self.assertIsNone(settings.public_key_path)

    def test_environment_fallback(self) -> None:
        env = {
            "TRA_VFD_API_BASE": "https://env.test/api",
            "TRA_VFD_TIN": "999888777",
            "TRA_VFD_USERNAME": "env-user",
            "TRA_VFD_PASSWORD": "env-pass",
            "TRA_VFD_PRIVATE_KEY": "/keys/vfd.pfx",
            "TRA_VFD_ENCRYPT": "false",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = conf.build_settings({"TIN": "111222333"})

        self.assertEqual(settings.base_url, "https://env.test/api")
        self.assertEqual(settings.tin, "111222333")
        self.assertEqual(settings.username, "env-user")
        self.assertEqual(settings.private_key_path, "/keys/vfd.pfx")
        self.assertFalse(settings.encrypt_payloads)

    def test_endpoint_overrides_merge_with_defaults(self) -> None:
        settings = conf.build_settings({"ENDPOINTS": {"receipt": "/v2/receipts"}})
        self.assertEqual(settings.endpoint("receipt"), "/v2/receipts")
        self.assertEqual(settings.endpoint("register"), "/api/vfdRegReq")

    def test_unknown_endpoint(self) -> None:
        with self.assertRaises(KeyError):
            conf.build_settings({}).endpoint("void")

    def test_url_for_joins_paths(self) -> None:
        settings = conf.build_settings({"BASE_URL": "https://vfd.test/efdmsRctApi/"})
        self.assertEqual(settings.url_for("/api/vfdRegReq"), "https://vfd.test/efdmsRctApi/api/vfdRegReq")

    def test_ttl_and_timeout(self) -> None:
        settings = conf.build_settings({"TOKEN_TTL": 600, "TIMEOUT": "5"})
        self.assertEqual(settings.token_ttl, dt.timedelta(minutes=10))
        self.assertEqual(settings.timeout, 5.0)


class GetSettingsTests(SimpleTestCase):
    def tearDown(self) -> None:
        conf.refresh_settings()
        super().tearDown()

    def test_reads_django_settings_and_refreshes_on_change(self) -> None:
        with override_settings(TRAVFD={"TIN": "123123123"}):
            self.assertEqual(conf.get_settings().tin, "123123123")
            self.assertIs(conf.get_settings(), conf.get_settings())

        with override_settings(TRAVFD={"TIN": "456456456"}):
            self.assertEqual(conf.get_settings().tin, "456456456")
