"""
End-to-end integration tests against a running HTTP server.
"""

import unittest
import logging
import os
import shutil
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor

import requests
from cryptography import x509
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from werkzeug.serving import make_server

from pfx_jwk.main import PfxJwkApplication
from pfx_jwk.security.encoding import base64url_decode, bytes_to_int
from tests.certificate_fixtures import TEST_PASSPHRASE, create_rsa_pfx


class TestEndToEndIntegration(unittest.TestCase):
    """Complete request workflows over HTTP."""

    @classmethod
    def setUpClass(cls):
        """Set up class-level fixtures."""
        cls.temp_dir = tempfile.mkdtemp()
        cls.pfx_path, cls.certificate, cls.private_key = create_rsa_pfx(cls.temp_dir)
        cls.config_path = os.path.join(cls.temp_dir, "test_config.properties")
        cls.log_path = os.path.join(cls.temp_dir, "logs", "test.log")
        cls._create_test_config()

        root_logger = logging.getLogger()
        cls.saved_handlers = root_logger.handlers[:]
        cls.saved_level = root_logger.level

        cls.application = PfxJwkApplication(config_path=cls.config_path, install_signal_handlers=False)
        if not cls.application.initialize():
            raise RuntimeError("Application failed to initialize")

        cls.server = make_server('127.0.0.1', 0, cls.application.flask_app.get_app(), threaded=True)
        cls.base_url = f"http://127.0.0.1:{cls.server.server_port}"
        cls.server_thread = threading.Thread(target=cls.server.serve_forever, daemon=True)
        cls.server_thread.start()

        cls.session = requests.Session()
        retry_strategy = Retry(total=3, backoff_factor=0.1, status_forcelist=[502, 503, 504])
        cls.session.mount("http://", HTTPAdapter(max_retries=retry_strategy))

    @classmethod
    def tearDownClass(cls):
        """Clean up class-level fixtures."""
        cls.session.close()
        cls.server.shutdown()
        cls.server_thread.join(timeout=5)
        cls.application.shutdown()

        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            handler.close()
            root_logger.removeHandler(handler)
        for handler in cls.saved_handlers:
            root_logger.addHandler(handler)
        root_logger.setLevel(cls.saved_level)

        shutil.rmtree(cls.temp_dir, ignore_errors=True)

    @classmethod
    def _create_test_config(cls):
        """Create test configuration file."""
        config_content = f"""
[certificate]
pfx_path = {cls.pfx_path}
pfx_password = {TEST_PASSPHRASE}

[cache]
enabled = true
ttl_seconds = 300

[telemetry]
enable_tracing = false
service_name = pfx-jwk-e2e

[app]
log_level = INFO
log_file_path = {cls.log_path}
"""
        with open(cls.config_path, 'w') as f:
            f.write(config_content)

    def _get(self, path):
        return self.session.get(f"{self.base_url}{path}", timeout=10)

    def test_jwk_workflow(self):
        """Test fetching the JWK and matching it to the served certificate."""
        jwk_response = self._get('/api/jwk')
        certificate_response = self._get('/api/certificate')

        self.assertEqual(jwk_response.status_code, 200)
        self.assertEqual(certificate_response.status_code, 200)

        certificate = x509.load_der_x509_certificate(certificate_response.content)
        jwk = jwk_response.json()
        self.assertEqual(
            bytes_to_int(base64url_decode(jwk['n'])),
            certificate.public_key().public_numbers().n
        )
        self.assertEqual(bytes_to_int(base64url_decode(jwk['e'])), 65537)

        for header in ('X-Certificate-Thumbprint', 'X-Certificate-Serial-Number',
                       'X-Certificate-Expiration'):
            self.assertEqual(jwk_response.headers[header], certificate_response.headers[header])
        self.assertEqual(jwk_response.headers['Cache-Control'], 'no-store')

    def test_concurrent_requests(self):
        """Test that parallel requests all get the same JWK."""
        with ThreadPoolExecutor(max_workers=8) as executor:
            responses = list(executor.map(lambda _: self._get('/api/jwk'), range(16)))

        self.assertTrue(all(response.status_code == 200 for response in responses))
        bodies = {response.text for response in responses}
        self.assertEqual(len(bodies), 1)

    def test_health_and_metrics(self):
        self._get('/api/certificate')

        health = self._get('/health').json()
        metrics = self._get('/metrics').text

        self.assertEqual(health['service'], 'pfx-jwk-e2e')
        self.assertTrue(health['certificate']['cache_enabled'])
        self.assertIn('certificate_requests_total{endpoint="/api/certificate",status="200"}', metrics)

    def test_log_file_written(self):
        self._get('/api/jwk')

        for handler in logging.getLogger().handlers:
            handler.flush()

        self.assertTrue(os.path.exists(self.log_path))
        with open(self.log_path, encoding='utf-8') as f:
            content = f.read()
        self.assertNotIn(TEST_PASSPHRASE, content)


if __name__ == '__main__':
    unittest.main()
