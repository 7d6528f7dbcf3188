"""
Schema module initialization.
Exports all schema classes from submodules for convenient imports.
"""
from .auth import *
from .admin import *
from .chat import *
from .site import *
from .waiting_list import *
