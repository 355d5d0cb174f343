from unittest.mock import MagicMock, patch

import pytest
import requests

from kommyutrouting.exceptions import APIError, LocationNotResolvableError
from kommyutrouting.geocoding import GeocodedPlace, LocationResolver, NominatimGeocoder


def test_resolves_stop_id_then_exact_name_then_search(service):
    locations = service.locations
    assert locations.resolve('S3').id == 'S3'
    assert locations.resolve('gamma plaza').id == 'S3'
    assert locations.resolve('Doroteo').id == 'LRT1_DJ'


def test_direct_match_never_calls_geocoder(service, stub_geocoder):
    service.locations.resolve('Beta Market')
    assert stub_geocoder.queries == []


def test_geocoded_address_snaps_to_nearest_stop(service, make_geocoder):
    geocoder = make_geocoder([GeocodedPlace(14.5005, 121.0004, 'Somewhere near Alpha')])
    resolver = LocationResolver(service.stop_index, geocoder, snap_radius_m=1000)
    stop = resolver.resolve('123 Rizal Street, Manila', 'destination')
    assert stop.id == 'S1'
    assert geocoder.queries == ['123 Rizal Street, Manila']


def test_later_geocoder_results_are_tried(service, make_geocoder):
    geocoder = make_geocoder([
        GeocodedPlace(15.9, 122.9, 'Far away'),
        GeocodedPlace(14.5201, 121.0199, 'Near Beta'),
    ])
    resolver = LocationResolver(service.stop_index, geocoder)
    assert resolver.resolve('Some Barangay Hall').id == 'S2'


def test_address_outside_radius_is_not_resolvable(service, make_geocoder):
    geocoder = make_geocoder([GeocodedPlace(14.9, 121.5, 'Rizal Province')])
    resolver = LocationResolver(service.stop_index, geocoder, snap_radius_m=1000)
    with pytest.raises(LocationNotResolvableError) as exc:
        resolver.resolve('Far Mountain Resort', 'destination')
    assert exc.value.side == 'destination'
    assert exc.value.text == 'Far Mountain Resort'


def test_no_geocoder_results_is_not_resolvable(service):
    with pytest.raises(LocationNotResolvableError):
        service.locations.resolve('Nowhere Street')


def test_geocoder_failure_is_reported_as_unresolvable(service, make_geocoder):
    geocoder = make_geocoder(error=APIError("timeout"))
    resolver = LocationResolver(service.stop_index, geocoder)
    with pytest.raises(LocationNotResolvableError) as exc:
        resolver.resolve('Nowhere Street')
    assert isinstance(exc.value.__cause__, APIError)


def test_empty_text_is_not_resolvable(service):
    with pytest.raises(LocationNotResolvableError):
        service.locations.resolve('   ')


def test_resolve_coordinates(service):
    assert service.locations.resolve_coordinates(14.5201, 121.0199).id == 'S2'
    with pytest.raises(LocationNotResolvableError):
        service.locations.resolve_coordinates(16.0, 123.0)


class TestNominatimGeocoder:

    def make_geocoder(self):
        return NominatimGeocoder('https://geocoder.test/search', 'kommyut-tests/1.0', country_codes='ph')

    @patch('kommyutrouting.geocoding.requests.get')
    def test_parses_results_and_sends_required_headers(self, mock_get):
        response = MagicMock()
        response.json.return_value = [
            {'lat': '14.5995', 'lon': '120.9842', 'display_name': 'Manila, Philippines'},
            {'lat': 'bad', 'lon': '120.0'},
        ]
        mock_get.return_value = response

        places = self.make_geocoder().geocode('Manila City Hall')

        assert places == [GeocodedPlace(14.5995, 120.9842, 'Manila, Philippines')]
        args, kwargs = mock_get.call_args
        assert args[0] == 'https://geocoder.test/search'
        assert kwargs['params']['q'] == 'Manila City Hall'
        assert kwargs['params']['format'] == 'json'
        assert kwargs['params']['countrycodes'] == 'ph'
        assert kwargs['headers']['User-Agent'] == 'kommyut-tests/1.0'

    @patch('kommyutrouting.geocoding.requests.get')
    def test_request_failure_raises_api_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("offline")
        with pytest.raises(APIError):
            self.make_geocoder().geocode('Manila City Hall')

    @patch('kommyutrouting.geocoding.requests.get')
    def test_http_error_raises_api_error(self, mock_get):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("503")
        mock_get.return_value = response
        with pytest.raises(APIError):
            self.make_geocoder().geocode('Manila City Hall')
