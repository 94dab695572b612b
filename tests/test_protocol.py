"""
Unit tests for the Sans-I/O protocol layer.

These tests verify protocol logic without any HTTP mocking required.
All tests are pure - they test data transformations only.
"""

from datetime import datetime, timedelta, timezone

import pytest
from lxml import etree

from carddav.lib import error
from carddav.protocol import (
    AddressbookHomeSetProp,
    AddressDataProp,
    CardDAVProtocol,
    CtagProp,
    CurrentUserPrincipalProp,
    DAVMethod,
    DAVRequest,
    DAVResponse,
    ResourceTypeProp,
    Tag,
    build_addressbook_home_set_body,
    build_addressbook_query_body,
    build_ctag_body,
    build_current_user_principal_body,
    build_resourcetype_body,
    format_http_date,
    is_ok_status,
    parse_http_date,
    parse_multistatus,
)

EMPTY_MULTISTATUS = b"""<?xml version="1.0" encoding="utf-8"?>
<d:multistatus xmlns:d="DAV:"/>"""

PRINCIPAL = b"""<?xml version="1.0" encoding="utf-8"?>
<d:multistatus xmlns:d="DAV:">
  <d:response>
    <d:href>/</d:href>
    <d:propstat>
      <d:prop>
        <d:current-user-principal><d:href>/principals/alice/</d:href></d:current-user-principal>
      </d:prop>
      <d:status>HTTP/1.1 200 OK</d:status>
    </d:propstat>
  </d:response>
</d:multistatus>"""

PRINCIPAL_MISSING = b"""<?xml version="1.0" encoding="utf-8"?>
<d:multistatus xmlns:d="DAV:">
  <d:response>
    <d:href>/</d:href>
    <d:propstat>
      <d:prop/>
    </d:propstat>
  </d:response>
</d:multistatus>"""

HOME_SET = b"""<?xml version="1.0" encoding="utf-8"?>
<d:multistatus xmlns:d="DAV:" xmlns:card="urn:ietf:params:xml:ns:carddav">
  <d:response>
    <d:href>/principals/alice/</d:href>
    <d:propstat>
      <d:prop>
        <card:addressbook-home-set><d:href>/addressbooks/alice/</d:href></card:addressbook-home-set>
      </d:prop>
      <d:status>HTTP/1.1 200 OK</d:status>
    </d:propstat>
  </d:response>
</d:multistatus>"""

COLLECTIONS = b"""<?xml version="1.0" encoding="utf-8"?>
<d:multistatus xmlns:d="DAV:" xmlns:card="urn:ietf:params:xml:ns:carddav">
  <d:response>
    <d:href>/addressbooks/alice/</d:href>
    <d:propstat>
      <d:prop><d:resourcetype><d:collection/></d:resourcetype></d:prop>
      <d:status>HTTP/1.1 200 OK</d:status>
    </d:propstat>
  </d:response>
  <d:response>
    <d:href>/addressbooks/alice/contacts/</d:href>
    <d:propstat>
      <d:prop><d:resourcetype><d:collection/><card:addressbook/></d:resourcetype></d:prop>
      <d:status>HTTP/1.1 200 OK</d:status>
    </d:propstat>
  </d:response>
  <d:response>
    <d:href>/addressbooks/alice/work/</d:href>
    <d:propstat>
      <d:prop><d:resourcetype><d:collection/><card:addressbook/></d:resourcetype></d:prop>
      <d:status>HTTP/1.1 200 OK</d:status>
    </d:propstat>
  </d:response>
</d:multistatus>"""

COLLECTIONS_NO_MATCH = b"""<?xml version="1.0" encoding="utf-8"?>
<d:multistatus xmlns:d="DAV:" xmlns:card="urn:ietf:params:xml:ns:carddav">
  <d:response>
    <d:href>/addressbooks/alice/gone/</d:href>
    <d:propstat>
      <d:prop><d:resourcetype><card:addressbook/></d:resourcetype></d:prop>
      <d:status>HTTP/1.1 404 Not Found</d:status>
    </d:propstat>
  </d:response>
  <d:response>
    <d:href>/addressbooks/alice/calendar/</d:href>
    <d:propstat>
      <d:prop><d:resourcetype><d:collection/></d:resourcetype></d:prop>
      <d:status>HTTP/1.1 200 OK</d:status>
    </d:propstat>
  </d:response>
</d:multistatus>"""

CTAG = b"""<?xml version="1.0" encoding="utf-8"?>
<d:multistatus xmlns:d="DAV:" xmlns:cs="http://calendarserver.org/ns/">
  <d:response>
    <d:href>/addressbooks/alice/contacts/</d:href>
    <d:propstat>
      <d:prop><cs:getctag>abc123</cs:getctag></d:prop>
      <d:status>HTTP/1.1 200 OK</d:status>
    </d:propstat>
  </d:response>
</d:multistatus>"""

CTAG_NOT_FOUND = b"""<?xml version="1.0" encoding="utf-8"?>
<d:multistatus xmlns:d="DAV:" xmlns:cs="http://calendarserver.org/ns/">
  <d:response>
    <d:href>/addressbooks/alice/contacts/</d:href>
    <d:propstat>
      <d:prop><cs:getctag/></d:prop>
      <d:status>HTTP/1.1 404 Not Found</d:status>
    </d:propstat>
  </d:response>
</d:multistatus>"""

ADDRESS_DATA = b"""<?xml version="1.0" encoding="utf-8"?>
<d:multistatus xmlns:d="DAV:" xmlns:card="urn:ietf:params:xml:ns:carddav">
  <d:response>
    <d:href>/addressbooks/alice/contacts/bob.vcf</d:href>
    <d:propstat>
      <d:prop>
        <d:getetag>"etag-bob"</d:getetag>
        <d:getlastmodified>Mon, 12 Jan 2015 10:00:00 GMT</d:getlastmodified>
        <card:address-data>BEGIN:VCARD
VERSION:3.0
UID:bob
FN:Bob Example
N:Example;Bob;;;
END:VCARD
</card:address-data>
      </d:prop>
      <d:status>HTTP/1.1 200 OK</d:status>
    </d:propstat>
  </d:response>
</d:multistatus>"""

ADDRESS_DATA_BAD_DATE = ADDRESS_DATA.replace(
    b"Mon, 12 Jan 2015 10:00:00 GMT", b"the twelfth of never"
)


def response(body: bytes, status: int = 207) -> DAVResponse:
    return DAVResponse(status=status, headers={}, body=body)


class TestDAVTypes:
    """Test core DAV types."""

    def test_dav_request_immutable(self):
        """DAVRequest should be immutable (frozen dataclass)."""
        request = DAVRequest(method=DAVMethod.GET, url="https://example.com/")
        with pytest.raises(AttributeError):
            request.url = "https://other.com/"

    def test_dav_response_ok(self):
        assert response(b"", 200).ok
        assert response(b"", 207).ok
        assert not response(b"", 404).ok

    def test_tags_compare_by_exact_value(self):
        assert Tag("abc123") == Tag("abc123")
        assert Tag("abc123") != Tag("ABC123")
        assert Tag('"1"') != Tag("1")
        assert str(Tag("xyz999")) == "xyz999"


class TestXMLBuilders:
    """Test XML building functions."""

    def _prop_children(self, body):
        tree = etree.fromstring(body)
        assert tree.tag in ("{DAV:}propfind", "{urn:ietf:params:xml:ns:carddav}addressbook-query")
        prop = tree.find("{DAV:}prop")
        return [child.tag for child in prop]

    def test_current_user_principal_body(self):
        assert self._prop_children(build_current_user_principal_body()) == [
            "{DAV:}current-user-principal"
        ]

    def test_addressbook_home_set_body(self):
        body = build_addressbook_home_set_body()
        assert self._prop_children(body) == [
            "{urn:ietf:params:xml:ns:carddav}addressbook-home-set"
        ]
        assert b'xmlns:D="DAV:"' in body
        assert b'xmlns:C="urn:ietf:params:xml:ns:carddav"' in body

    def test_resourcetype_body(self):
        assert self._prop_children(build_resourcetype_body()) == ["{DAV:}resourcetype"]

    def test_ctag_body(self):
        body = build_ctag_body()
        assert self._prop_children(body) == ["{http://calendarserver.org/ns/}getctag"]
        assert b"http://calendarserver.org/ns/" in body

    def test_addressbook_query_body(self):
        body = build_addressbook_query_body()
        assert etree.fromstring(body).tag == "{urn:ietf:params:xml:ns:carddav}addressbook-query"
        assert self._prop_children(body) == [
            "{DAV:}getetag",
            "{DAV:}getlastmodified",
            "{urn:ietf:params:xml:ns:carddav}address-data",
        ]
        filter_ = etree.fromstring(body).find("{urn:ietf:params:xml:ns:carddav}filter")
        assert filter_ is not None
        assert len(filter_) == 0


class TestMultistatusParser:
    """Test the generic multistatus parser."""

    def test_empty_multistatus(self):
        result = parse_multistatus(EMPTY_MULTISTATUS, CurrentUserPrincipalProp)
        assert len(result) == 0
        assert result.first() is None

    def test_entries_keep_server_order(self):
        result = parse_multistatus(COLLECTIONS, ResourceTypeProp)
        assert [entry.href for entry in result] == [
            "/addressbooks/alice/",
            "/addressbooks/alice/contacts/",
            "/addressbooks/alice/work/",
        ]
        assert not result.responses[0].properties.is_addressbook
        assert result.responses[1].properties.is_addressbook

    def test_absent_status(self):
        result = parse_multistatus(PRINCIPAL_MISSING, CurrentUserPrincipalProp)
        assert result.first().status is None

    def test_partial_payload_defaults_to_absent(self):
        result = parse_multistatus(PRINCIPAL_MISSING, CurrentUserPrincipalProp)
        assert result.first().properties.href is None
        result = parse_multistatus(PRINCIPAL_MISSING, ResourceTypeProp)
        assert not result.first().properties.is_addressbook
        result = parse_multistatus(PRINCIPAL_MISSING, CtagProp)
        assert result.first().properties.ctag is None

    def test_status_and_payload(self):
        entry = parse_multistatus(HOME_SET, AddressbookHomeSetProp).first()
        assert entry.href == "/principals/alice/"
        assert entry.status == "HTTP/1.1 200 OK"
        assert entry.properties.href == "/addressbooks/alice/"

    def test_absolute_href_becomes_path(self):
        body = PRINCIPAL.replace(
            b"<d:href>/</d:href>", b"<d:href>https://dav.example.com/dav/%7Ealice/</d:href>"
        )
        entry = parse_multistatus(body, CurrentUserPrincipalProp).first()
        assert entry.href == "/dav/~alice/"

    def test_successful_propstat_is_preferred(self):
        body = b"""<d:multistatus xmlns:d="DAV:" xmlns:cs="http://calendarserver.org/ns/">
          <d:response>
            <d:href>/addressbooks/alice/contacts/</d:href>
            <d:propstat>
              <d:prop><d:displayname/></d:prop>
              <d:status>HTTP/1.1 404 Not Found</d:status>
            </d:propstat>
            <d:propstat>
              <d:prop><cs:getctag>abc123</cs:getctag></d:prop>
              <d:status>HTTP/1.1 200 OK</d:status>
            </d:propstat>
          </d:response>
        </d:multistatus>"""
        entry = parse_multistatus(body, CtagProp).first()
        assert entry.properties.ctag == Tag("abc123")
        assert entry.status == "HTTP/1.1 200 OK"

    def test_address_data(self):
        entry = parse_multistatus(ADDRESS_DATA, AddressDataProp).first()
        assert entry.properties.etag == Tag('"etag-bob"')
        assert entry.properties.last_modified == datetime(
            2015, 1, 12, 10, 0, tzinfo=timezone.utc
        )
        assert "FN:Bob Example" in entry.properties.address_data

    def test_missing_address_data_is_malformed(self):
        body = ADDRESS_DATA.replace(b"<d:getetag>\"etag-bob\"</d:getetag>", b"")
        with pytest.raises(error.MalformedResponseError):
            parse_multistatus(body, AddressDataProp)

    def test_bad_date_fails(self):
        with pytest.raises(error.DateParseError):
            parse_multistatus(ADDRESS_DATA_BAD_DATE, AddressDataProp)

    @pytest.mark.parametrize(
        "body",
        [
            b"",
            b"this is not xml",
            b"<d:multistatus xmlns:d='DAV:'><d:response>",
            b"<html><body>Login required</body></html>",
        ],
    )
    def test_malformed_bodies(self, body):
        with pytest.raises(error.MalformedResponseError):
            parse_multistatus(body, CurrentUserPrincipalProp)

    def test_response_without_href_is_malformed(self):
        body = PRINCIPAL.replace(b"<d:href>/</d:href>", b"")
        with pytest.raises(error.MalformedResponseError):
            parse_multistatus(body, CurrentUserPrincipalProp)


class TestHTTPDates:
    def test_round_trip(self):
        parsed = parse_http_date("Mon, 12 Jan 2015 10:00:00 GMT")
        assert parse_http_date(format_http_date(parsed)) == parsed

    def test_round_trip_other_zone(self):
        parsed = parse_http_date("Tue, 03 Mar 2020 23:15:00 +0130")
        assert parsed.utcoffset() == timedelta(hours=1, minutes=30)
        formatted = format_http_date(parsed)
        assert formatted.endswith("GMT")
        assert parse_http_date(formatted) == parsed

    @pytest.mark.parametrize("value", ["", "   ", "yesterday", "2015-01-12T10:00:00Z"])
    def test_invalid_dates(self, value):
        with pytest.raises(error.DateParseError):
            parse_http_date(value)


class TestStatusMatching:
    def test_ok_status(self):
        assert is_ok_status("HTTP/1.1 200 OK")
        assert not is_ok_status("HTTP/1.1 404 Not Found")
        assert not is_ok_status(None)
        assert not is_ok_status("HTTP/1.1 200 ok")
        assert not is_ok_status("HTTP/1.1 207 Multi-Status")


class TestCardDAVProtocol:
    """Test CardDAVProtocol request building and interpretation."""

    def setup_method(self):
        self.protocol = CardDAVProtocol(host="https://dav.example.com")

    def test_requests(self):
        request = self.protocol.current_user_principal_request("/")
        assert request.method == DAVMethod.PROPFIND
        assert request.url == "https://dav.example.com/"
        assert request.headers["Depth"] == "0"

        request = self.protocol.addressbook_request("/addressbooks/alice/")
        assert request.url == "https://dav.example.com/addressbooks/alice/"
        assert request.headers["Depth"] == "1"

        request = self.protocol.address_data_request("/addressbooks/alice/contacts/")
        assert request.method == DAVMethod.REPORT
        assert b"addressbook-query" in request.body

    def test_absolute_urls_are_kept(self):
        request = self.protocol.ctag_request("https://dav.example.com/ab/")
        assert request.url == "https://dav.example.com/ab/"

    def test_paths_are_escaped_for_the_wire(self):
        request = self.protocol.ctag_request("/addressbooks/alice/work#team/")
        assert request.url == "https://dav.example.com/addressbooks/alice/work%23team/"
        request = self.protocol.get_request("/ab/a b.vcf")
        assert request.url == "https://dav.example.com/ab/a%20b.vcf"
        request = self.protocol.delete_request("/ab/what%3F.vcf")
        assert request.url == "https://dav.example.com/ab/what%3F.vcf"

    def test_escaped_href_round_trip(self):
        body = b"""<d:multistatus xmlns:d="DAV:" xmlns:c="urn:ietf:params:xml:ns:carddav">
<d:response><d:href>/addressbooks/alice/work%23team/</d:href><d:propstat>
<d:prop><d:resourcetype><d:collection/><c:addressbook/></d:resourcetype></d:prop>
<d:status>HTTP/1.1 200 OK</d:status></d:propstat></d:response></d:multistatus>"""
        found = self.protocol.find_addressbook(response(body))
        assert found == "/addressbooks/alice/work#team/"
        request = self.protocol.address_data_request(found)
        assert request.url == "https://dav.example.com/addressbooks/alice/work%23team/"

    def test_put_request_headers(self):
        request = self.protocol.put_request("/ab/bob.vcf", "BEGIN:VCARD", create=True)
        assert request.headers["If-None-Match"] == "*"
        assert "If-Match" not in request.headers
        request = self.protocol.put_request("/ab/bob.vcf", "BEGIN:VCARD", etag=Tag('"1"'))
        assert request.headers["If-Match"] == '"1"'
        assert request.headers["Content-Type"].startswith("text/vcard")

    def test_find_current_user_principal(self):
        assert self.protocol.find_current_user_principal(response(PRINCIPAL)) == "/principals/alice/"
        assert self.protocol.find_current_user_principal(response(PRINCIPAL_MISSING)) is None
        assert self.protocol.find_current_user_principal(response(EMPTY_MULTISTATUS)) is None

    def test_find_addressbook_home_set(self):
        assert self.protocol.find_addressbook_home_set(response(HOME_SET)) == "/addressbooks/alice/"
        assert self.protocol.find_addressbook_home_set(response(PRINCIPAL_MISSING)) is None

    def test_find_addressbook_first_match_wins(self):
        assert (
            self.protocol.find_addressbook(response(COLLECTIONS))
            == "/addressbooks/alice/contacts/"
        )

    def test_find_addressbook_needs_status_and_marker(self):
        assert self.protocol.find_addressbook(response(COLLECTIONS_NO_MATCH)) is None

    def test_find_ctag(self):
        assert self.protocol.find_ctag(response(CTAG)) == Tag("abc123")
        assert self.protocol.find_ctag(response(CTAG_NOT_FOUND)) is None
        assert self.protocol.find_ctag(response(EMPTY_MULTISTATUS)) is None

    def test_parse_address_data(self):
        records = self.protocol.parse_address_data(response(ADDRESS_DATA))
        assert len(records) == 1
        href, envelope = records[0]
        assert href == "/addressbooks/alice/contacts/bob.vcf"
        assert envelope.tag == Tag('"etag-bob"')

    def test_check_response(self):
        get = self.protocol.get_request("/ab/bob.vcf")
        put = self.protocol.put_request("/ab/bob.vcf", "x", etag=Tag("1"))
        propfind = self.protocol.ctag_request("/ab/")

        self.protocol.check_response(propfind, response(b"", 207))
        with pytest.raises(error.AuthorizationError):
            self.protocol.check_response(propfind, response(b"", 401))
        with pytest.raises(error.TransportError):
            self.protocol.check_response(propfind, response(b"", 404))
        with pytest.raises(error.TransportError) as excinfo:
            self.protocol.check_response(propfind, response(b"", 500))
        assert excinfo.value.status == 500
        with pytest.raises(error.NotFoundError):
            self.protocol.check_response(get, response(b"", 404))
        with pytest.raises(error.ConflictError):
            self.protocol.check_response(put, response(b"", 412))
        with pytest.raises(error.PutError):
            self.protocol.check_response(put, response(b"", 409))

    def test_etag_from_headers(self):
        resp = DAVResponse(status=201, headers={"ETag": '"2"'}, body=b"")
        assert self.protocol.etag_from_headers(resp) == Tag('"2"')
        assert self.protocol.etag_from_headers(response(b"", 204)) is None
