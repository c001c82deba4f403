# Import every model here so Alembic autogenerate can discover them
# and so Base.metadata.create_all() works in tests.
# venues must be registered before checkins, which FK-reference it.

from taplog.models.venue import Venue              # noqa: F401
from taplog.models.checkin import Checkin          # noqa: F401
from taplog.models.checkin_like import CheckinLike  # noqa: F401
