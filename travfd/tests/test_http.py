"""Tests for the requests-backed transport."""

from __future__ import annotations

from unittest import mock

import requests
from django.test import SimpleTestCase

from travfd import http
from travfd.errors import TransportError
from travfd.xml_builder import parse_response_xml


class RequestsAdapterTests(SimpleTestCase):
    def _session(self, status_code: int = 200, text: str = "<R/>") -> mock.Mock:
        fake_response = mock.Mock()
        fake_response.status_code = status_code
        fake_response.text = text
        fake_response.content = text.encode("utf-8")
        fake_response.headers = {"Content-Type": "application/xml"}

        session = mock.Mock()
        session.request.return_value = fake_response
        return session

    def test_requests_adapter_executes_call(self) -> None:
        session = self._session()
        http_request = http.build_requests_http_request(session=session, timeout=8.0)

        result = http_request(
            "POST",
            "https://vfd.test/api",
            {"Accept": "application/xml"},
            body="<Request/>",
        )

        session.request.assert_called_once_with(
            method="POST",
            url="https://vfd.test/api",
            data="<Request/>",
            json=None,
            params=None,
            headers={"Accept": "application/xml"},
            timeout=8.0,
        )
        self.assertEqual(
            result,
            http.HttpResponse(200, "<R/>", {"Content-Type": "application/xml"}, content=b"<R/>"),
        )
        self.assertTrue(result.ok)

    def test_keeps_undecoded_body_for_non_utf8_xml(self) -> None:
        response = requests.Response()
        response.status_code = 200
        response.headers["Content-Type"] = "application/xml; charset=ISO-8859-1"
        response._content = (
            '<?xml version="1.0" encoding="ISO-8859-1"?><EFDMS><NAME>Jos\u00e9</NAME></EFDMS>'
        ).encode("latin-1")
        session = mock.Mock()
        session.request.return_value = response

        result = http.build_requests_http_request(session=session)("GET", "https://vfd.test", {})

        self.assertEqual(result.raw, response.content)
        self.assertEqual(parse_response_xml(result.raw), {"NAME": "Jos\u00e9"})

    def test_raw_falls_back_to_encoded_text(self) -> None:
        response = http.HttpResponse(200, "<R>Jos\u00e9</R>")
        self.assertEqual(response.raw, "<R>Jos\u00e9</R>".encode("utf-8"))

    def test_error_statuses_are_returned(self) -> None:
        session = self._session(status_code=503, text="Service Unavailable")
        result = http.build_requests_http_request(session=session)("GET", "https://vfd.test", {})

        self.assertEqual(result.status_code, 503)
        self.assertFalse(result.ok)

    def test_network_failures_become_transport_errors(self) -> None:
        for failure in (
            requests.Timeout("slow"),
            requests.ConnectionError("refused"),
            requests.exceptions.InvalidURL("bad"),
        ):
            with self.subTest(failure=type(failure).__name__):
                session = mock.Mock()
                session.request.side_effect = failure
                http_request = http.build_requests_http_request(session=session)

                with self.assertRaises(TransportError):
                    http_request("GET", "https://vfd.test", {})
