from .gtfs import Stop, Route, Trip
from .itinerary import Fare, FareEstimate, ModeClassification, ConnectingRoute, ItineraryCandidate
from .user_trip import TripStatus, UserTrip, TripStats

__all__ = ['Stop', 'Route', 'Trip', 'Fare', 'FareEstimate', 'ModeClassification', 'ConnectingRoute',
           'ItineraryCandidate', 'TripStatus', 'UserTrip', 'TripStats']
