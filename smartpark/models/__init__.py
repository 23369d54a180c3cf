# SmartPark Database Models
# Import all models here for SQLAlchemy discovery

from smartpark.models.location import Location   # noqa
from smartpark.models.slot import Slot           # noqa
from smartpark.models.booking import Booking     # noqa
from smartpark.models.alert import Alert         # noqa
