from __future__ import annotations

import unittest
from unittest import mock

from email_relay.adapters.kafka_runtime import WorkerStartupError
from email_relay.config import RelayConfig
from email_relay.service import run_service


class RunServiceTests(unittest.TestCase):
    @mock.patch("email_relay.service.configure_logging")
    @mock.patch("email_relay.service.uvicorn.run")
    @mock.patch("email_relay.service.EmailRelayWorker")
    def test_broker_failure_exits_before_http_server(
        self,
        worker_cls: mock.Mock,
        uvicorn_run: mock.Mock,
        _configure_logging: mock.Mock,
    ) -> None:
        worker_cls.return_value.start.side_effect = WorkerStartupError("NoBrokersAvailable")

        with self.assertLogs("email_relay.service", level="ERROR"):
            exit_code = run_service(RelayConfig())

        self.assertEqual(exit_code, 1)
        uvicorn_run.assert_not_called()

    @mock.patch("email_relay.service.configure_logging")
    @mock.patch("email_relay.service.uvicorn.run")
    @mock.patch("email_relay.service.EmailRelayWorker")
    def test_serves_http_after_worker_start_and_stops_worker(
        self,
        worker_cls: mock.Mock,
        uvicorn_run: mock.Mock,
        _configure_logging: mock.Mock,
    ) -> None:
        exit_code = run_service(RelayConfig(port=5005))

        self.assertEqual(exit_code, 0)
        worker_cls.return_value.start.assert_called_once()
        self.assertEqual(uvicorn_run.call_args.kwargs["port"], 5005)
        worker_cls.return_value.stop.assert_called()

    @mock.patch("email_relay.service.configure_logging")
    @mock.patch("email_relay.service.uvicorn.run")
    def test_invalid_configuration_exits_non_zero(
        self, uvicorn_run: mock.Mock, _configure_logging: mock.Mock
    ) -> None:
        with mock.patch.dict("os.environ", {"SMTP_SECURE": "sometimes"}, clear=True):
            with self.assertLogs("email_relay.service", level="ERROR"):
                exit_code = run_service()

        self.assertEqual(exit_code, 1)
        uvicorn_run.assert_not_called()


if __name__ == "__main__":
    unittest.main()
