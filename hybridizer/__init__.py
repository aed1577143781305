'''This file defines which files to import when 'from hybridizer import *' is used'''

__all__ = []

__version__ = "0.1.0"
__license__ = "GPLv3"
__status__ = "Prototype"
