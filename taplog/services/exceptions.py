class TapLogError(Exception):
    """Base class for service-level errors."""


class BackendError(TapLogError):
    """A generative backend call failed or produced no usable payload."""


class VenueNotFoundError(TapLogError):
    def __init__(self, venue_id: int):
        super().__init__(f"Venue {venue_id} not found")
        self.venue_id = venue_id


class CheckinNotFoundError(TapLogError):
    def __init__(self, checkin_id: int):
        super().__init__(f"Check-in {checkin_id} not found")
        self.checkin_id = checkin_id
