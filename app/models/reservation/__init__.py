from .table import Table
from .reservation import Reservation, ReservationStatus
