from ports_monitor.endpoint import Endpoint, normalize_state, parse_endpoint


def test_bracketed_ipv6():
    assert parse_endpoint("[::1]:8080") == Endpoint("::1", 8080)


def test_plain_ipv4():
    assert parse_endpoint("127.0.0.1:53") == Endpoint("127.0.0.1", 53)


def test_wildcard_without_port():
    assert parse_endpoint("*") == Endpoint("*", None)


def test_unbracketed_ipv6_takes_last_colon_group():
    assert parse_endpoint(":::22") == Endpoint("::", 22)


def test_wildcard_host_with_port():
    assert parse_endpoint("*:3000") == Endpoint("*", 3000)


def test_non_numeric_port_is_unparseable():
    assert parse_endpoint("0.0.0.0:*") == Endpoint("0.0.0.0:*", None)


def test_empty_and_non_string_input_degrade_to_null_port():
    assert parse_endpoint("") == Endpoint("", None)
    assert parse_endpoint(None) == Endpoint("", None)


def test_normalize_state():
    assert normalize_state("listen") == "LISTEN"
    assert normalize_state(None) == ""
    assert normalize_state("") == ""
