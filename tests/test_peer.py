from datetime import datetime, timedelta, timezone
from ipaddress import ip_address, ip_interface

import pytest

from meshmgmt.peer import (
    ZERO_TIME,
    Environment,
    File,
    Location,
    NetworkAddress,
    Peer,
    PeerStatus,
    PeerSystemMeta,
)


def _meta_pair():
    meta1 = PeerSystemMeta(
        network_addresses=[
            NetworkAddress(net_ip=ip_interface("192.168.1.2/24"), mac="2"),
            NetworkAddress(net_ip=ip_interface("192.168.1.0/24"), mac="1"),
        ],
        files=[
            File(path="/etc/hosts1", exist=True, process_is_running=True),
            File(path="/etc/hosts2", exist=False, process_is_running=False),
        ],
    )
    meta2 = PeerSystemMeta(
        network_addresses=[
            NetworkAddress(net_ip=ip_interface("192.168.1.0/24"), mac="1"),
            NetworkAddress(net_ip=ip_interface("192.168.1.2/24"), mac="2"),
        ],
        files=[
            File(path="/etc/hosts2", exist=False, process_is_running=False),
            File(path="/etc/hosts1", exist=True, process_is_running=True),
        ],
    )
    return meta1, meta2


def test_is_equal_ignores_order():
    meta1, meta2 = _meta_pair()
    assert meta1.is_equal(meta2)


def test_is_equal_detects_differing_address():
    meta1, meta2 = _meta_pair()
    meta2.network_addresses[0].net_ip = ip_interface("10.0.0.1/24")
    assert not meta1.is_equal(meta2)


def test_is_equal_detects_differing_file_flag():
    meta1, meta2 = _meta_pair()
    meta2.files[1].exist = False
    assert not meta1.is_equal(meta2)


def test_is_equal_detects_differing_environment():
    meta1, meta2 = _meta_pair()
    meta2.environment = Environment(cloud="aws")
    assert not meta1.is_equal(meta2)


def test_is_empty():
    assert PeerSystemMeta().is_empty()
    assert not PeerSystemMeta(hostname="host").is_empty()
    assert not PeerSystemMeta(files=[File(path="/x")]).is_empty()


def test_fqdn():
    p = Peer(dns_label="test-peer")
    assert p.fqdn("example.com") == "test-peer.example.com"
    assert p.fqdn("") == ""


def test_added_with_sso_login():
    assert Peer(user_id="user1").added_with_sso_login()
    assert not Peer().added_with_sso_login()


def test_copy_is_independent():
    p = Peer(
        id="p1",
        status=PeerStatus(connected=True),
        extra_dns_labels=["a"],
        meta=PeerSystemMeta(hostname="h", files=[File(path="/f")]),
    )
    c = p.copy()
    assert c == p
    c.status.connected = False
    c.extra_dns_labels.append("b")
    c.meta.files.append(File(path="/g"))
    assert p.status.connected is True
    assert p.extra_dns_labels == ["a"]
    assert len(p.meta.files) == 1


def test_update_meta_if_new_empty_is_ignored():
    p = Peer(meta=PeerSystemMeta(hostname="h"))
    assert p.update_meta_if_new(PeerSystemMeta()) is False
    assert p.meta.hostname == "h"


def test_update_meta_if_new_keeps_ui_version():
    p = Peer(meta=PeerSystemMeta(hostname="h", ui_version="1.0"))
    new = PeerSystemMeta(hostname="h2")
    assert p.update_meta_if_new(new) is True
    assert p.meta.hostname == "h2"
    assert p.meta.ui_version == "1.0"
    assert new.ui_version == ""


def test_update_meta_if_new_same_meta():
    p = Peer(meta=PeerSystemMeta(hostname="h", ui_version="1.0"))
    assert p.update_meta_if_new(PeerSystemMeta(hostname="h")) is False


def test_last_login_time():
    assert Peer().last_login_time() == ZERO_TIME
    when = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert Peer(last_login=when).last_login_time() == when


def test_mark_login_expired():
    original = PeerStatus(connected=True)
    p = Peer(status=original)
    p.mark_login_expired(True)
    assert p.status.login_expired is True
    assert p.status.connected is False
    assert original.connected is True
    p.mark_login_expired(False)
    assert p.status.login_expired is False


def test_mark_login_expired_without_status():
    with pytest.raises(ValueError):
        Peer(status=None).mark_login_expired(True)


def test_login_expired():
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    p = Peer(user_id="u", login_expiration_enabled=True, last_login=past)
    expired, left = p.login_expired(timedelta(hours=1))
    assert expired is True
    assert left < timedelta(0)
    expired, left = p.login_expired(timedelta(hours=5))
    assert expired is False
    assert left > timedelta(0)


def test_login_expired_disabled():
    p = Peer(user_id="", login_expiration_enabled=True)
    assert p.login_expired(timedelta(hours=1)) == (False, timedelta(0))


def test_session_expired():
    seen = datetime.now(timezone.utc) - timedelta(hours=2)
    p = Peer(
        user_id="u",
        inactivity_expiration_enabled=True,
        status=PeerStatus(last_seen=seen),
    )
    expired, left = p.session_expired(timedelta(hours=1))
    assert expired is True
    assert left < timedelta(0)
    p.status.connected = True
    assert p.session_expired(timedelta(hours=1)) == (False, timedelta(0))


def test_event_meta():
    p = Peer(
        name="peer",
        dns_label="peer",
        ip=ip_address("100.64.0.1"),
        location=Location(city_name="Berlin", country_code="DE", geo_name_id=7),
    )
    meta = p.event_meta("example.com")
    assert meta["name"] == "peer"
    assert meta["fqdn"] == "peer.example.com"
    assert meta["ip"] == ip_address("100.64.0.1")
    assert meta["location_city_name"] == "Berlin"
    assert meta["location_country_code"] == "DE"
    assert meta["location_geo_name_id"] == 7
    assert meta["location_connection_ip"] is None


def test_update_last_login():
    p = Peer(status=PeerStatus(login_expired=True))
    before = datetime.now(timezone.utc)
    result = p.update_last_login()
    assert result is p
    assert p.status.login_expired is False
    assert p.last_login >= before