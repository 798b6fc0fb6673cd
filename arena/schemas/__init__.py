"""
Pydantic schemas package
"""

from .common import *
from .user import *
from .event import *
from .seat_map import *
from .registration import *
from .team import *
from .bracket import *
from .notification import *
