import io
import logging
import unittest

from starlette.datastructures import Headers

from tests.base import ResourceApiBase
from crud_service.core.http_hardening import resolve_request_id
from crud_service.core.logging import LOG_FORMAT, RequestIdFormatter, current_request_id, request_id_context


class RequestIdTests(unittest.TestCase):
    def test_safe_header_value_is_kept(self):
        self.assertEqual(resolve_request_id(Headers({"x-request-id": " lote-42.a_b "})), "lote-42.a_b")

    def test_unsafe_or_missing_value_gets_a_fresh_id(self):
        for raw in ("", "com espaço", "x" * 129, "a\nb"):
            with self.subTest(raw=raw):
                generated = resolve_request_id(Headers({"x-request-id": raw}))
                self.assertNotEqual(generated, raw)
                self.assertRegex(generated, r"^[0-9a-f]{32}$")
        self.assertRegex(resolve_request_id(Headers({})), r"^[0-9a-f]{32}$")

    def test_formatter_appends_request_id_only_inside_a_request(self):
        formatter = RequestIdFormatter("%(name)s %(message)s")
        record = logging.LogRecord("crud_service.resources", logging.INFO, __file__, 1, "estados deleted id=%s", (3,), None)
        self.assertEqual(formatter.format(record), "crud_service.resources estados deleted id=3")
        with request_id_context("abc123"):
            self.assertEqual(current_request_id(), "abc123")
            self.assertEqual(formatter.format(record), "crud_service.resources estados deleted id=3 | request_id=abc123")
        self.assertIsNone(current_request_id())


class ResourceRequestContextTests(ResourceApiBase):
    def setUp(self):
        super().setUp()
        self.stream = io.StringIO()
        self.handler = logging.StreamHandler(self.stream)
        self.handler.setFormatter(RequestIdFormatter(LOG_FORMAT))
        self.logger = logging.getLogger("crud_service.resources")
        self.previous_level = self.logger.level
        self.logger.setLevel(logging.INFO)
        self.logger.addHandler(self.handler)

    def tearDown(self):
        self.logger.removeHandler(self.handler)
        self.logger.setLevel(self.previous_level)
        super().tearDown()

    def test_resource_log_lines_carry_the_request_id(self):
        response = self.client.post(
            "/api/estados",
            json={"nome": "Bahia", "sigla": "BA"},
            headers={"X-Request-ID": "cadastro-estado-1"},
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.headers.get("x-request-id"), "cadastro-estado-1")
        self.assertIn(f"estados created id={response.json()['id']} | request_id=cadastro-estado-1", self.stream.getvalue())

    def test_error_responses_keep_headers_and_log_the_request_id(self):
        self._seed()
        estado_id = self.client.get("/api/estados", params={"filter[sigla]": "rs"}).json()["data"][0]["id"]
        response = self.client.delete(f"/api/estados/{estado_id}", headers={"X-Request-ID": "remocao-rs"})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.headers.get("x-request-id"), "remocao-rs")
        self.assertEqual(response.headers.get("x-content-type-options"), "nosniff")
        self.assertEqual(response.headers.get("cache-control"), "no-store")
        self.assertIn("request_id=remocao-rs", self.stream.getvalue())

    def test_health_gets_a_generated_request_id(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers.get("x-frame-options"), "DENY")
        self.assertRegex(response.headers.get("x-request-id", ""), r"^[0-9a-f]{32}$")


if __name__ == "__main__":
    unittest.main()
