import unittest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from booking_core.infrastructure.gateways.notification_broker_http import NotificationBrokerHTTP


class TestNotificationBrokerHTTP(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.broker = NotificationBrokerHTTP(url="http://notify.test/facts", timeout_seconds=2.0)
        self.fact = {"reservation_id": 11, "guest_contact": "identity:42"}

    def _mock_client(self, mock_client_cls, response):
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.post.return_value = response
        mock_client_cls.return_value = mock_client
        return mock_client

    @patch("httpx.AsyncClient")
    async def test_posts_fact_with_idempotency_key(self, mock_client_cls):
        response = MagicMock()
        response.status_code = 202
        mock_client = self._mock_client(mock_client_cls, response)

        await self.broker.publish("reservation-created", self.fact)

        args, kwargs = mock_client.post.call_args
        self.assertEqual(args[0], "http://notify.test/facts")
        self.assertEqual(kwargs["json"], {"topic": "reservation-created", "fact": self.fact})
        self.assertEqual(kwargs["headers"]["Idempotency-Key"], "reservation-created:11")
        mock_client_cls.assert_called_once_with(timeout=2.0)

    @patch("httpx.AsyncClient")
    async def test_non_2xx_raises_so_outbox_retries(self, mock_client_cls):
        response = MagicMock()
        response.status_code = 500
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "HTTP 500", request=MagicMock(), response=response
        )
        self._mock_client(mock_client_cls, response)

        with self.assertRaises(httpx.HTTPStatusError):
            await self.broker.publish("reservation-created", self.fact)
