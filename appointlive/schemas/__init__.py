# Schemas package (re-export feature modules for stable imports)
from .appointments.appointment import *
from .doctors.doctor import *
from .queue.queue import *
from .roles.role import *
from .eta.eta import *
