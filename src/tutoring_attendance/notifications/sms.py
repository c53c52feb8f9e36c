from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

import httpx

from ..core.constants import DEFAULT_SMS_HEADER, NETGSM_SEND_URL, SMS_TIMEOUT_SECONDS
from ..core.exceptions import SmsDeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmsMessage:
    phone: str
    text: str


class SmsSender(Protocol):
    def send_bulk(self, messages: Iterable[SmsMessage]) -> int:
        """Send every message in one provider call; returns how many were sent."""

        raise NotImplementedError


@dataclass(frozen=True)
class NetGsmConfig:
    user: str = ""
    password: str = ""
    header: str = DEFAULT_SMS_HEADER
    url: str = NETGSM_SEND_URL
    timeout: float = SMS_TIMEOUT_SECONDS

    @classmethod
    def from_dict(cls, sms_config: Optional[dict]) -> "NetGsmConfig":
        sms_config = sms_config or {}
        return cls(
            user=str(sms_config.get("user", "")),
            password=str(sms_config.get("password", "")),
            header=str(sms_config.get("header") or DEFAULT_SMS_HEADER),
            url=str(sms_config.get("url") or NETGSM_SEND_URL),
            timeout=float(sms_config.get("timeout", SMS_TIMEOUT_SECONDS)),
        )


class NetGsmSmsSender(SmsSender):
    """Bulk SMS through the NetGSM JSON API."""

    def __init__(self, config: NetGsmConfig, *, client: Optional[httpx.Client] = None):
        self._config = config
        self._client = client

    def send_bulk(self, messages: Iterable[SmsMessage]) -> int:
        entries = [
            {"gsmno": m.phone.strip(), "msg": m.text}
            for m in messages
            if (m.phone or "").strip() and (m.text or "").strip()
        ]
        if not entries:
            return 0

        payload = {
            "usercode": self._config.user,
            "password": self._config.password,
            "msgheader": self._config.header,
            "messages": entries,
        }

        try:
            if self._client is not None:
                response = self._client.post(self._config.url, json=payload)
            else:
                with httpx.Client(timeout=self._config.timeout) as client:
                    response = client.post(self._config.url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("SMS provider answered %s for %d message(s)", e.response.status_code, len(entries))
            raise SmsDeliveryError(f"SMS provider returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("SMS provider unreachable: %s", e)
            raise SmsDeliveryError("SMS provider is unreachable") from e

        logger.info("Sent %d SMS message(s)", len(entries))
        return len(entries)
