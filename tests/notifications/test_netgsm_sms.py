from __future__ import annotations

import json

import httpx
import pytest

from tutoring_attendance.core.exceptions import SmsDeliveryError
from tutoring_attendance.notifications.sms import NetGsmConfig, NetGsmSmsSender, SmsMessage

CONFIG = NetGsmConfig(user="8500000000", password="pw", header="DERSHANE", url="https://sms.test/send/json")


def _sender(handler) -> NetGsmSmsSender:
    return NetGsmSmsSender(CONFIG, client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_bulk_send_posts_one_json_payload():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"code": "00", "jobid": "123"})

    sent = _sender(handler).send_bulk(
        [
            SmsMessage("905550000001", "first"),
            SmsMessage("   ", "skipped"),
            SmsMessage(" 905550000002 ", "second"),
            SmsMessage("905550000003", " "),
        ]
    )

    assert sent == 2
    (request,) = seen
    assert request.method == "POST"
    assert str(request.url) == "https://sms.test/send/json"
    body = json.loads(request.content)
    assert body == {
        "usercode": "8500000000",
        "password": "pw",
        "msgheader": "DERSHANE",
        "messages": [{"gsmno": "905550000001", "msg": "first"}, {"gsmno": "905550000002", "msg": "second"}],
    }


def test_nothing_to_send_makes_no_request():
    def handler(request):
        raise AssertionError("no request expected")

    assert _sender(handler).send_bulk([SmsMessage("", "x")]) == 0
    assert _sender(handler).send_bulk([]) == 0


def test_provider_error_status_raises():
    sender = _sender(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(SmsDeliveryError, match="HTTP 500"):
        sender.send_bulk([SmsMessage("905550000001", "hi")])


def test_unreachable_provider_raises():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(SmsDeliveryError, match="unreachable"):
        _sender(handler).send_bulk([SmsMessage("905550000001", "hi")])


def test_config_from_dict_falls_back_to_defaults():
    cfg = NetGsmConfig.from_dict({"user": "u", "password": "p", "header": ""})

    assert cfg.header == "DERSHANE"
    assert cfg.url == "https://api.netgsm.com.tr/sms/send/json"
    assert NetGsmConfig.from_dict(None).user == ""
