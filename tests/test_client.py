import pytest
import requests

from energy_budget.client import ForecastServiceClient
from energy_budget.errors import TransportError
from energy_budget.metering import RealPoint


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=b''):
        self.status_code = status_code
        self._payload = payload
        self.content = content
        self.text = '' if payload is None else str(payload)

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError('no json')
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def _client(**kwargs):
    session = FakeSession(**kwargs)
    return ForecastServiceClient('http://budget.test/', timeout=3, session=session), session


def test_fetch_forecasts_returns_rows():
    client, session = _client(response=FakeResponse(payload=[{'mese': 1}]))
    assert client.fetch_forecasts('IT001', 2025) == [{'mese': 1}]
    assert session.calls[0][:2] == ('GET', 'http://budget.test/budget/IT001/2025')


def test_fetch_forecasts_404_means_no_data():
    client, _ = _client(response=FakeResponse(status_code=404))
    assert client.fetch_forecasts('IT001', 2025) == []


def test_fetch_forecasts_server_error_raises():
    client, _ = _client(response=FakeResponse(status_code=502, payload={'error': 'bad gateway'}))
    with pytest.raises(TransportError) as excinfo:
        client.fetch_forecasts('IT001', 2025)
    assert excinfo.value.status == 502


def test_network_failure_raises_transport_error():
    client, _ = _client(error=requests.ConnectionError('refused'))
    with pytest.raises(TransportError):
        client.fetch_forecasts('IT001', 2025)


def test_update_forecast_sends_wire_payload():
    client, session = _client(response=FakeResponse(status_code=204))
    client.update_forecast('IT001', 2025, 6, {'energy_price_pct': 10, 'consumption_pct': 0, 'ancillary_pct': -5})

    method, url, kwargs = session.calls[0]
    assert (method, url) == ('PUT', 'http://budget.test/budget/previsioni')
    assert kwargs['params'] == {'pod': 'IT001', 'anno': 2025, 'mese': 6}
    assert kwargs['json'] == {'prezzoEnergiaPerc': 10.0, 'consumiPerc': 0.0, 'oneriPerc': -5.0}


def test_update_forecast_rejection_raises():
    client, _ = _client(response=FakeResponse(status_code=400, payload={'error': 'locked'}))
    with pytest.raises(TransportError) as excinfo:
        client.update_forecast('IT001', 2025, 6, {'energy_price_pct': 1})
    assert excinfo.value.status == 400
    assert 'locked' in excinfo.value.body


def test_list_metering_points_drops_aggregate():
    payload = [{'id': 'ALL'}, {'id': 'IT001', 'sede': 'Milano'}, {'id': ''}, {'id': 'IT002'}]
    client, _ = _client(response=FakeResponse(payload=payload))
    points = client.list_metering_points()

    assert [p.point for p in points] == [RealPoint('IT001'), RealPoint('IT002')]
    assert points[0].label == 'Milano (IT001)'


def test_export_workbook_returns_bytes():
    client, session = _client(response=FakeResponse(content=b'xlsx-bytes'))
    assert client.export_workbook('ALL', 2025) == b'xlsx-bytes'
    assert session.calls[0][2]['params'] == {'pod': 'ALL', 'anno': 2025}
