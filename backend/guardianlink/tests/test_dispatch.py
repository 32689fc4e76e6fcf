# backend/guardianlink/tests/test_dispatch.py
from urllib.parse import unquote, urlsplit

import anyio
import pytest

from guardianlink.models.contact import ContactPublic
from guardianlink.services.dispatch import (
    LinkCollector,
    dispatch_all,
    encode_message,
    map_link,
    normalize_number,
    whatsapp_link,
)


@pytest.mark.parametrize("raw,expected", [
    ("+1 (234) 567-8901", "+12345678901"),
    ("234.567.8901", "2345678901"),
    ("+52 55 1234 5678", "+525512345678"),
    ("  +15551234567 ", "+15551234567"),
    ("++1-555", "+1555"),
])
def test_normalize_number(raw, expected):
    assert normalize_number(raw) == expected


def test_encode_message_matches_browser_encoding():
    # encodeURIComponent deja sin escapar: A-Z a-z 0-9 - _ . ! ~ * ' ( )
    assert encode_message("I'm ok (really)!") == "I'm%20ok%20(really)!"
    assert encode_message("a+b&c=d?/") == "a%2Bb%26c%3Dd%3F%2F"
    assert encode_message("⚠️") == "%E2%9A%A0%EF%B8%8F"


def test_map_link_formats_coordinates_like_js():
    assert map_link(19.4326, -99.1332) == "https://maps.google.com/?q=19.4326,-99.1332"
    assert map_link(40.0, -3) == "https://maps.google.com/?q=40,-3"
    # cerca del ecuador/meridiano JS no usa exponente hasta 1e-6
    assert map_link(0.00005, -0.00001) == "https://maps.google.com/?q=0.00005,-0.00001"
    assert map_link(0.0, -0.0) == "https://maps.google.com/?q=0,0"
    assert map_link(1e-7, 1.5e-7) == "https://maps.google.com/?q=1e-7,1.5e-7"
    assert map_link(-0.1, 123.456) == "https://maps.google.com/?q=-0.1,123.456"


def test_whatsapp_link_round_trips_message():
    url = whatsapp_link("+15551234567", "Help me! https://maps.google.com/?q=1,2")
    parts = urlsplit(url)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://wa.me/+15551234567"
    assert unquote(parts.query.removeprefix("text=")) == "Help me! https://maps.google.com/?q=1,2"


def _contact(i: int, name: str, number: str) -> ContactPublic:
    return ContactPublic(id=f"c{i}", name=name, whatsappNumber=number)


def test_malformed_number_does_not_block_others():
    contacts = [
        _contact(1, "Mom", "+1 (555) 123-4567"),
        _contact(2, "Roto", "abc"),
        _contact(3, "Dad", "5551234567"),
    ]
    collector = LinkCollector()
    links = anyio.run(dispatch_all, contacts, "help", collector)

    assert [l.opened for l in links] == [True, False, True]
    assert links[1].error == "invalid_number"
    assert links[1].url is None
    assert collector.urls == [
        "https://wa.me/+15551234567?text=help",
        "https://wa.me/5551234567?text=help",
    ]


class _FlakyOpener:
    def __init__(self, fail_for: str):
        self.fail_for = fail_for
        self.opened = []

    async def open(self, url: str) -> None:
        if self.fail_for in url:
            raise OSError("popup bloqueado")
        self.opened.append(url)


def test_open_failure_is_isolated():
    contacts = [_contact(1, "A", "+15550000001"), _contact(2, "B", "+15550000002"), _contact(3, "C", "+15550000003")]
    opener = _FlakyOpener("15550000002")
    links = anyio.run(dispatch_all, contacts, "help", opener)

    assert [l.opened for l in links] == [True, False, True]
    assert links[1].error == "open_failed"
    assert links[1].url.startswith("https://wa.me/+15550000002")
    assert len(opener.opened) == 2
