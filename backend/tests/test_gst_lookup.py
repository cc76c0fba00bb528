# Overview: Pytest coverage for the GSTIN lookup client.

import httpx

from supplydesk.results import ErrorKind
from supplydesk.services.gst_service import lookup_gstin

GSTIN = "27AAPFU0939F1ZV"


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestLookupClient:
    def test_success_returns_inner_data(self, app):
        seen = {}

        def handler(request):
            seen['url'] = str(request.url)
            seen['key'] = request.headers.get('x-rapidapi-key')
            return httpx.Response(200, json={'data': {'gstin': GSTIN, 'legal_name': "Acme Books"}})

        with app.app_context():
            result = lookup_gstin(GSTIN.lower(), client=_client(handler))

        assert result.ok
        assert result.data['legal_name'] == "Acme Books"
        assert GSTIN in seen['url']
        assert seen['key'] == "test-key"

    def test_http_error_is_upstream(self, app):
        with app.app_context():
            result = lookup_gstin(GSTIN, client=_client(lambda request: httpx.Response(502)))
        assert not result.ok
        assert result.kind is ErrorKind.UPSTREAM

    def test_timeout_is_upstream(self, app):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with app.app_context():
            result = lookup_gstin(GSTIN, client=_client(handler))
        assert result.kind is ErrorKind.UPSTREAM
        assert result.message == "GST lookup timed out"

    def test_unknown_gstin_is_upstream(self, app):
        with app.app_context():
            result = lookup_gstin(GSTIN, client=_client(lambda request: httpx.Response(200, json={'message': "not found"})))
        assert result.kind is ErrorKind.UPSTREAM
        assert result.details == {'message': "not found"}

    def test_invalid_format_skips_the_network(self, app):
        def handler(request):
            raise AssertionError("should not be called")

        with app.app_context():
            result = lookup_gstin("12345", client=_client(handler))
        assert result.kind is ErrorKind.VALIDATION


class TestLookupRoute:
    def test_invalid_format(self, client, headers_a):
        response = client.get('/api/invoices/lookup-gst/BAD', headers=headers_a)
        assert response.status_code == 400

    def test_unconfigured_key_reports_in_band(self, app, client, headers_a, monkeypatch):
        monkeypatch.setitem(app.config, 'RAPIDAPI_KEY', "")
        response = client.get(f"/api/invoices/lookup-gst/{GSTIN}", headers=headers_a)
        assert response.status_code == 200
        assert response.json == {'success': False, 'message': "GST lookup service is not configured"}
